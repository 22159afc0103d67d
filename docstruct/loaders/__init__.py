from docstruct.loaders.client import DatasetServiceClient, ExampleSource
from docstruct.loaders.dataset_loader import DatasetLoader, DatasetLoaderConfig, stringify_content
from docstruct.loaders.types import Document, ExampleRecord

__all__ = [
    "DatasetLoader",
    "DatasetLoaderConfig",
    "DatasetServiceClient",
    "Document",
    "ExampleRecord",
    "ExampleSource",
    "stringify_content",
]
