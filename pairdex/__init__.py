"""
Pairdex: constant-product pair engine

Core imports are lazily loaded so that importing a submodule does not pull
in the whole engine. For direct module access, import from submodules:

    from pairdex.exchange import PairFactory, ReservePair
    from pairdex.chain import ChainContext
    from pairdex.exceptions import InvariantViolationError
"""

# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'ChainContext':
        from .chain import ChainContext
        return ChainContext
    elif name == 'PairFactory':
        from .exchange import PairFactory
        return PairFactory
    elif name == 'ReservePair':
        from .exchange import ReservePair
        return ReservePair
    elif name == 'load_config':
        from .config import load_config
        return load_config
    elif name == 'PairdexException':
        from .exceptions import PairdexException
        return PairdexException
    raise AttributeError(f"module 'pairdex' has no attribute {name!r}")

__all__ = ['ChainContext', 'PairFactory', 'ReservePair', 'load_config', 'PairdexException']
