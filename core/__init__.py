"""
Core modules for Capture Flow

- image_store: ordered captured images with selection flags
- crop_transform: display selection -> native crop
- capture_controller / camera_backend: camera feed lifecycle and snapshots
- batch_dispatcher: concurrent per-image analysis
- history_buffer: in-memory analysis history

Import submodules directly; schemas depend on core.enums, so this package
does not re-export anything.
"""
