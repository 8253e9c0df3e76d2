from .chain_repository import ChainRepository

__all__ = ['ChainRepository']
