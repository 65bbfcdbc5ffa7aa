"""HTTP adapters for kernel errors."""
