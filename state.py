from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List

from db import UserDataRepository
from models import UserData
from workout_data import default_user_data

_LOGGER = logging.getLogger(__name__)

Listener = Callable[[UserData], None]


class TrainingState:
    """Owns the current ``UserData`` snapshot.

    Services change state only through :meth:`transaction`, which hands
    out a deep copy, swaps it in when the block finishes, saves the whole
    snapshot and notifies subscribers. Readers use :attr:`data` and must
    not mutate it.
    """

    def __init__(self, repo: UserDataRepository) -> None:
        self.repo = repo
        loaded = repo.load()
        self.restored = loaded is not None
        self._data = loaded if loaded is not None else default_user_data()
        self._listeners: List[Listener] = []
        if not self.restored:
            _LOGGER.info("No stored snapshot in %s, starting from defaults", repo.db_path)

    @property
    def data(self) -> UserData:
        return self._data

    def snapshot(self) -> UserData:
        return self._data.model_copy(deep=True)

    @contextmanager
    def transaction(self) -> Iterator[UserData]:
        draft = self.snapshot()
        yield draft
        self.commit(draft)

    def commit(self, data: UserData) -> None:
        self._data = data
        self.repo.save(data)
        for listener in list(self._listeners):
            try:
                listener(data)
            except Exception:
                _LOGGER.exception("State listener %r failed", listener)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reset(self) -> None:
        self.commit(default_user_data())
