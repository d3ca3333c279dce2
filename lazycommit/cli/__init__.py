from .main import run_lazycommit

__all__ = ["run_lazycommit"]
