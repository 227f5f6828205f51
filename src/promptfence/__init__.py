"""promptfence: prompt editing with disabled and hidden text spans."""

__version__ = "0.1.0"
