from .tokens import TokenSigner

__all__ = ["TokenSigner"]
