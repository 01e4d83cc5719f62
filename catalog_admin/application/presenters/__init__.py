from .catalog_presenter import CatalogPresenter

__all__ = ["CatalogPresenter"]
