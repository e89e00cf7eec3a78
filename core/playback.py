from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Sequence, Tuple

from .assets import AssetRegistry
from .model import Segment
from .segments import EVENT_DELETE, SegmentStore

log = logging.getLogger("duocut.playback")

STATE_STOPPED = "stopped"
STATE_PLAYING = "playing"


class PlaybackInterrupted(RuntimeError):
    """Raised (or used to reject) when a play request is cut short by a source change."""
    pass


class MediaEngine(Protocol):
    """
    Preview player for one track.

    Any method may return an awaitable instead of completing synchronously
    (the flet controls do); the scheduler runs those through `run_task`.
    """

    def set_source(self, handle: Any) -> Any: ...

    def seek(self, seconds: float) -> Any: ...

    def play(self) -> Any: ...

    def pause(self) -> Any: ...


RunTask = Callable[[Callable[[], Awaitable[None]]], Any]
_Command = Tuple[str, Callable[..., Any], Tuple[Any, ...]]


class PlaybackScheduler:
    """
    Play/pause state machine for one track with segment-to-segment auto-advance.

    Stopped --toggle--> Playing: seek to the selected segment's in-point and play;
    the first progress notification past the segment's out-point selects the next
    segment in timeline order, or stops at the end of the track. After each seek,
    positions are ignored until one falls inside the started segment.
    """

    def __init__(
        self,
        store: SegmentStore,
        assets: AssetRegistry,
        engine: MediaEngine,
        run_task: Optional[RunTask] = None,
        on_state_change: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store
        self.assets = assets
        self.engine = engine
        self.run_task = run_task
        self.on_state_change = on_state_change
        self._state = STATE_STOPPED
        self._source: Any = None
        # (segment id, asset id, source_start) last sent to the engine
        self._started_key: Optional[Tuple[str, str, float]] = None
        # True from a start until a progress position lands inside the started segment.
        self._awaiting_seek = False
        # Bumped on every command batch; stale async batches stop early.
        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = store.subscribe(self._on_store_change)
        self._sync_source()

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == STATE_PLAYING

    def _set_state(self, state: str) -> None:
        if state == self._state:
            return
        self._state = state
        if self.on_state_change is not None:
            self.on_state_change(state)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ---------- commands ----------

    def toggle(self) -> None:
        if self.is_playing:
            self.stop()
            return

        if self.store.selected is None:
            ordered = self.store.list_ordered()
            if not ordered:
                return
            self._set_state(STATE_PLAYING)
            self._started_key = None
            # The selection event starts the segment.
            self.store.select(ordered[0].id)
            return

        self._set_state(STATE_PLAYING)
        self._started_key = None
        self._start(self.store.selected)

    def stop(self) -> None:
        was_playing = self.is_playing
        self._set_state(STATE_STOPPED)
        self._started_key = None
        self._awaiting_seek = False
        if was_playing:
            self._run([("pause", self.engine.pause, ())])

    def on_progress(self, position_sec: float) -> None:
        """Progress notification from the engine (source-time seconds)."""
        if not self.is_playing:
            return
        seg = self.store.selected
        if seg is None:
            return
        pos = float(position_sec)
        if self._awaiting_seek:
            if not (seg.source_start <= pos < seg.source_end):
                return
            self._awaiting_seek = False
        if pos < seg.source_end:
            return
        nxt = self.store.next(seg.id)
        if nxt is not None:
            self.store.select(nxt.id)
        else:
            self.stop()

    # ---------- store reactions ----------

    def _on_store_change(self, store: SegmentStore, event: str) -> None:
        seg = store.selected
        if not self.is_playing:
            self._sync_source()
            return
        if seg is None:
            if event == EVENT_DELETE:
                self.stop()
            return
        if self._key(seg) != self._started_key:
            self._start(seg)

    @staticmethod
    def _key(seg: Segment) -> Tuple[str, str, float]:
        return seg.id, seg.asset_id, seg.source_start

    def _source_commands(self) -> Optional[List[_Command]]:
        """
        Commands loading the selected segment's asset into the engine.

        Empty when the engine already holds it; None when the asset is unknown.
        """
        seg = self.store.selected
        if seg is None:
            return []
        asset = self.assets.lookup(seg.asset_id)
        if asset is None:
            log.debug("no asset %s for segment %s", seg.asset_id, seg.id)
            return None
        if asset.media_handle == self._source:
            return []
        self._source = asset.media_handle
        return [("set_source", self.engine.set_source, (asset.media_handle,))]

    def _sync_source(self) -> None:
        commands = self._source_commands()
        if commands:
            self._run(commands)

    def _start(self, seg: Optional[Segment]) -> None:
        if seg is None:
            return
        commands = self._source_commands()
        if commands is None:
            self.stop()
            return
        self._started_key = self._key(seg)
        self._awaiting_seek = seg.duration > 0
        self._run(
            [
                *commands,
                ("seek", self.engine.seek, (seg.source_start,)),
                ("play", self.engine.play, ()),
            ]
        )

    # ---------- engine dispatch ----------

    def _failed(self, name: str, ex: BaseException) -> None:
        if name == "set_source":
            # Retry the swap on the next start.
            self._source = None
        if name == "play":
            log.warning("Playback interrupted: %s", ex)
        else:
            log.exception("%s failed: %s", name, ex)

    def _run(self, commands: Sequence[_Command]) -> None:
        self._generation += 1
        gen = self._generation
        for i, (name, fn, args) in enumerate(commands):
            try:
                result = fn(*args)
            except Exception as ex:
                self._failed(name, ex)
                continue
            if inspect.isawaitable(result):
                self._spawn(gen, name, result, list(commands[i + 1 :]))
                return

    def _spawn(self, gen: int, name: str, pending: Awaitable[Any], rest: Sequence[_Command]) -> None:
        if self.run_task is None:
            log.debug("no task runner; dropping async %s", name)
            if inspect.iscoroutine(pending):
                pending.close()
            return

        async def _chain() -> None:
            try:
                await pending
            except Exception as ex:
                self._failed(name, ex)
            for next_name, fn, args in rest:
                if gen != self._generation:
                    return
                try:
                    result = fn(*args)
                    if inspect.isawaitable(result):
                        await result
                except Exception as ex:
                    self._failed(next_name, ex)

        self.run_task(_chain)
