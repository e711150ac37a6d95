from .client import HttpProductCatalog, ProductCatalog, StaticProductCatalog

__all__ = ["HttpProductCatalog", "ProductCatalog", "StaticProductCatalog"]
