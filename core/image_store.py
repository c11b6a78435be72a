"""
Image Store - Ordered in-memory collection of captured images
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from api.exceptions import ImageNotFoundException
from core.constants import ImageConstants
from core.enums import StoreEventKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CapturedImage:
    """Single captured image. Mutations replace the whole record."""

    id: str
    buffer: np.ndarray  # BGR, treated as immutable
    selected: bool = True
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def width(self) -> int:
        return int(self.buffer.shape[1])

    @property
    def height(self) -> int:
        return int(self.buffer.shape[0])


@dataclass(frozen=True)
class StoreEvent:
    """Change notification emitted after every successful mutation"""

    kind: StoreEventKind
    image_ids: Tuple[str, ...]


StoreListener = Callable[[StoreEvent], None]


class ImageStore:
    """
    Ordered collection of captured images and their selection flags.

    Insertion order is the canonical order for display and for the
    "last captured" query. The store is single-writer: it does no locking and
    expects every call to come from the owning event loop.
    """

    def __init__(self):
        self._images: Dict[str, CapturedImage] = {}
        self._listeners: List[StoreListener] = []

        logger.info("Image Store initialized")

    # Change notification

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """
        Register a change listener.

        Args:
            listener: Called with a StoreEvent after each mutation

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: StoreEventKind, image_ids) -> None:
        event = StoreEvent(kind=kind, image_ids=tuple(image_ids))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Store listener failed on {kind.value}: {e}", exc_info=True)

    # Mutations

    def add(self, buffer: np.ndarray) -> str:
        """
        Append a new image.

        Args:
            buffer: Image pixels (BGR NumPy array)

        Returns:
            Image ID
        """
        image_id = self._new_id()
        self._images[image_id] = CapturedImage(id=image_id, buffer=buffer)

        logger.debug(f"Added image {image_id} ({buffer.shape[1]}x{buffer.shape[0]})")
        self._emit(StoreEventKind.ADDED, [image_id])
        return image_id

    def toggle_selection(self, image_id: str) -> bool:
        """
        Flip the selection flag of an image.

        Returns:
            New selection value

        Raises:
            ImageNotFoundException: If image_id is unknown
        """
        image = self._require(image_id)
        self._images[image_id] = replace(image, selected=not image.selected)

        self._emit(StoreEventKind.SELECTION_CHANGED, [image_id])
        return not image.selected

    def set_selection_all(self, value: bool) -> None:
        """Set the selection flag of every image."""
        for image_id, image in list(self._images.items()):
            if image.selected != value:
                self._images[image_id] = replace(image, selected=value)

        self._emit(StoreEventKind.SELECTION_CHANGED, self._images.keys())

    def remove(self, image_id: str) -> int:
        """
        Delete an image. Unknown IDs are ignored.

        Returns:
            Number of images removed (0 or 1)
        """
        if self._images.pop(image_id, None) is None:
            return 0

        logger.debug(f"Removed image {image_id}")
        self._emit(StoreEventKind.REMOVED, [image_id])
        return 1

    def remove_where(self, predicate: Callable[[CapturedImage], bool]) -> int:
        """
        Delete every image matching predicate.

        Returns:
            Number of images removed
        """
        doomed = [image_id for image_id, image in self._images.items() if predicate(image)]
        if not doomed:
            return 0

        for image_id in doomed:
            del self._images[image_id]

        logger.debug(f"Removed {len(doomed)} images")
        self._emit(StoreEventKind.REMOVED, doomed)
        return len(doomed)

    def remove_selected(self) -> int:
        """Delete every selected image."""
        return self.remove_where(lambda image: image.selected)

    def replace_buffer(self, image_id: str, new_buffer: np.ndarray) -> None:
        """
        Swap the pixels of an existing image, keeping its ID and selection.

        Raises:
            ImageNotFoundException: If image_id is unknown
        """
        image = self._require(image_id)
        self._images[image_id] = replace(image, buffer=new_buffer)

        logger.debug(
            f"Replaced buffer of {image_id} ({new_buffer.shape[1]}x{new_buffer.shape[0]})"
        )
        self._emit(StoreEventKind.BUFFER_REPLACED, [image_id])

    def clear(self) -> None:
        """Delete all images"""
        removed = list(self._images.keys())
        self._images.clear()

        if removed:
            self._emit(StoreEventKind.REMOVED, removed)
        logger.info("Image Store cleared")

    # Queries (snapshots taken at call time)

    def all(self) -> Tuple[CapturedImage, ...]:
        return tuple(self._images.values())

    def selected(self) -> Tuple[CapturedImage, ...]:
        return tuple(image for image in self._images.values() if image.selected)

    def selected_ids(self) -> Tuple[str, ...]:
        return tuple(image.id for image in self._images.values() if image.selected)

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._images.keys())

    def get(self, image_id: str) -> Optional[CapturedImage]:
        return self._images.get(image_id)

    def last(self) -> Optional[CapturedImage]:
        """Most recently added image, if any."""
        if not self._images:
            return None
        return next(reversed(self._images.values()))

    @property
    def selected_count(self) -> int:
        return sum(1 for image in self._images.values() if image.selected)

    def __len__(self) -> int:
        return len(self._images)

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._images

    # Internals

    def _require(self, image_id: str) -> CapturedImage:
        image = self._images.get(image_id)
        if image is None:
            raise ImageNotFoundException(image_id)
        return image

    def _new_id(self) -> str:
        while True:
            image_id = f"{ImageConstants.IMAGE_ID_PREFIX}{uuid.uuid4().hex}"
            if image_id not in self._images:
                return image_id
