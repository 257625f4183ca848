__version__ = "0.1.0"

def transpile(source: str, **options) -> str:
    from .compiler import transpile as _transpile
    return _transpile(source, **options)

__all__ = ["__version__", "transpile"]
