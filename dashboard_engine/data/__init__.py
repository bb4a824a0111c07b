"""
Raw Data Module
"""
from .generators import RawDataGenerator
from .loader import RAW_FILES, RawDataset, load_raw_dataset, save_raw_dataset

__all__ = [
    "RAW_FILES",
    "RawDataGenerator",
    "RawDataset",
    "load_raw_dataset",
    "save_raw_dataset",
]
