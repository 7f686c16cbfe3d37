from neurodrive.persistence.model_io import (
    MODEL_FORMAT_VERSION,
    SavedModel,
    config_differences,
    load_model,
    restore_engine,
    saved_settings,
    save_model,
    snapshot_engine,
)

__all__ = [
    "MODEL_FORMAT_VERSION",
    "SavedModel",
    "config_differences",
    "load_model",
    "restore_engine",
    "saved_settings",
    "save_model",
    "snapshot_engine",
]
