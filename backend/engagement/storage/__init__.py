"""
Storage Module
==============
Persistence adapters: model version stores and historical sample sources.

Usage:
    from engagement.storage import JsonModelStore, JsonSampleSource

    store = JsonModelStore("models_store/model_registry.json")
    samples = JsonSampleSource("data/training_samples.jsonl").fetch_samples()
"""

from .store import ModelStore, InMemoryModelStore, JsonModelStore, create_model_store
from .samples import SampleSource, InMemorySampleSource, JsonSampleSource

__all__ = [
    'ModelStore',
    'InMemoryModelStore',
    'JsonModelStore',
    'create_model_store',
    'SampleSource',
    'InMemorySampleSource',
    'JsonSampleSource',
]
