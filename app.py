from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

import flet as ft
import flet_audio as fta
import flet_video as ftv

from core.config import ENV_AUDIO_PREVIEW, ConfigStore
from core.ffmpeg import FFmpegNotFound, probe_media, resolve_ffprobe
from core.geometry import ASPECT_HORIZONTAL, ASPECT_VERTICAL, preview_size, segment_rect, timeline_width_px
from core.gestures import EDGE_END, EDGE_START
from core.model import TRACK_AUDIO, TRACK_VIDEO, Segment
from core.playback import PlaybackInterrupted, PlaybackScheduler
from core.segments import EVENT_UPDATE, SegmentStore
from core.session import EditorSession
from core.timeline import overlapping_pairs

logging.basicConfig(level=logging.INFO)
log = logging.getLogger("duocut")

VIDEO_EXTENSIONS = ["mp4", "mov", "mkv", "avi", "webm", "m4v"]
AUDIO_EXTENSIONS = ["mp3", "wav", "flac", "aac", "ogg", "m4a"]

TRACK_ROW_H = 56
HANDLE_W = 8


def _fmt_time(sec: Optional[float]) -> str:
    if sec is None:
        return "--:--"
    sec = max(0.0, float(sec))
    m = int(sec // 60)
    s = sec - m * 60
    return f"{m:02d}:{s:05.2f}"


def _event_global_x(e) -> Optional[float]:
    try:
        return float(e.global_position.x)
    except Exception:
        pass
    try:
        return float(getattr(e, "global_x", None))
    except Exception:
        return None


def _position_to_sec(pos_raw) -> Optional[float]:
    """Normalize a flet position value (Duration-like or milliseconds) to seconds."""
    if pos_raw is None:
        return None
    try:
        if hasattr(pos_raw, "in_milliseconds"):
            return max(0.0, float(pos_raw.in_milliseconds) / 1000.0)
        if isinstance(pos_raw, (int, float)):
            return max(0.0, float(pos_raw) / 1000.0)
    except Exception:
        return None
    return None


class FletVideoEngine:
    """
    Playback engine over a flet_video.Video control.

    The control is created on the first source and placed into `slot`.
    flet_video has no position event, so progress is polled while playing.
    """

    def __init__(self, page: ft.Page, slot: ft.Container, interval_ms: int = 250) -> None:
        self.page = page
        self.slot = slot
        self.interval_ms = int(interval_ms)
        self.video: Optional[ftv.Video] = None
        self.on_progress: Optional[Callable[[float], None]] = None
        self._source: Optional[str] = None
        # Bumped by play and pause; a poll loop exits once its id is stale.
        self._poll_loop_id = 0

    def set_source(self, handle) -> None:
        self._source = str(handle)
        if self.video is None:
            self.video = ftv.Video(
                expand=True,
                playlist=[ftv.VideoMedia(str(handle))],
                autoplay=False,
                show_controls=False,
            )
            self.slot.content = self.video
            self.slot.update()
            return
        self.video.playlist = [ftv.VideoMedia(str(handle))]
        self.video.update()

    async def seek(self, seconds: float) -> None:
        if self.video is not None:
            await self.video.seek(int(float(seconds) * 1000))

    async def play(self) -> None:
        if self.video is None:
            return
        requested = self._source
        await self.video.play()
        if self._source != requested:
            raise PlaybackInterrupted(f"source changed while starting {requested}")
        self._poll_loop_id += 1
        self.page.run_task(self._poll, self._poll_loop_id)

    async def pause(self) -> None:
        self._poll_loop_id += 1
        if self.video is not None:
            await self.video.pause()

    async def _poll(self, loop_id: int) -> None:
        while loop_id == self._poll_loop_id and self.video is not None:
            await asyncio.sleep(self.interval_ms / 1000.0)
            if loop_id != self._poll_loop_id:
                break
            try:
                pos = _position_to_sec(await self.video.get_current_position())
            except Exception as ex:
                log.debug("position poll failed: %s", ex)
                continue
            if loop_id != self._poll_loop_id:
                break
            if pos is not None and self.on_progress is not None:
                self.on_progress(pos)


class FletAudioEngine:
    """Playback engine over a non-visual flet_audio.Audio control."""

    def __init__(self, audio: fta.Audio) -> None:
        self.audio = audio
        self.on_progress: Optional[Callable[[float], None]] = None
        self.audio.on_position_change = self._on_position

    def set_source(self, handle) -> None:
        self.audio.src = str(handle)
        self.audio.update()

    async def seek(self, seconds: float) -> None:
        await self.audio.seek(int(float(seconds) * 1000))

    async def play(self) -> None:
        await self.audio.play()

    async def pause(self) -> None:
        await self.audio.pause()

    def _on_position(self, e) -> None:
        pos = _position_to_sec(getattr(e, "position", None))
        if pos is not None and self.on_progress is not None:
            self.on_progress(pos)


def main(page: ft.Page) -> None:
    page.title = "DuoCut"
    _platform = str(getattr(page, "platform", "") or "").lower()
    is_web = bool(getattr(page, "web", False)) or ("web" in _platform)
    if not is_web:
        page.window.width = 1200
        page.window.height = 800
    page.theme_mode = ft.ThemeMode.DARK
    page.padding = 10

    root = Path(__file__).resolve().parent
    cfg = ConfigStore.default()
    px_per_sec = cfg.pixels_per_second()
    session = EditorSession(px_per_sec=px_per_sec, default_segment_sec=cfg.default_segment_sec())
    video_store = session.track(TRACK_VIDEO)
    audio_store = session.track(TRACK_AUDIO)

    def snack(msg: str) -> None:
        # SnackBar is a DialogControl in newer Flet versions.
        page.show_dialog(ft.SnackBar(ft.Text(msg)))

    # ---------- Preview ----------
    aspect = cfg.preview_aspect()
    pw, ph = preview_size(aspect)
    preview_slot = ft.Container(
        width=pw,
        height=ph,
        bgcolor=ft.Colors.BLACK,
        alignment=ft.Alignment(0, 0),
        content=ft.Text("Select a segment", color=ft.Colors.WHITE38),
    )

    def on_playback_state(_state: str) -> None:
        refresh_transport()
        page.update()

    video_engine = FletVideoEngine(page, preview_slot, interval_ms=cfg.progress_interval_ms())
    video_sched = session.attach_engine(
        TRACK_VIDEO, video_engine, run_task=page.run_task, on_state_change=on_playback_state
    )
    video_engine.on_progress = video_sched.on_progress

    audio_sched: Optional[PlaybackScheduler] = None
    if cfg.audio_preview_enabled():
        # Non-visual audio player for the audio track preview.
        audio = fta.Audio(volume=1.0)
        page.overlay.append(audio)
        audio_engine = FletAudioEngine(audio)
        audio_sched = session.attach_engine(
            TRACK_AUDIO, audio_engine, run_task=page.run_task, on_state_change=on_playback_state
        )
        audio_engine.on_progress = audio_sched.on_progress

    play_btn = ft.IconButton(ft.Icons.PLAY_ARROW, tooltip="Play", disabled=True)
    audio_play_btn = ft.IconButton(ft.Icons.PLAY_ARROW, tooltip="Play audio", disabled=True)
    audio_title = ft.Text("Select audio", color=ft.Colors.WHITE38)

    def refresh_transport() -> None:
        play_btn.disabled = len(video_store) == 0
        play_btn.icon = ft.Icons.PAUSE if video_sched.is_playing else ft.Icons.PLAY_ARROW
        play_btn.tooltip = "Pause" if video_sched.is_playing else "Play"
        if audio_sched is None:
            audio_play_btn.disabled = True
            audio_play_btn.tooltip = f"Audio preview is off ({ENV_AUDIO_PREVIEW}=0)"
        else:
            audio_play_btn.disabled = len(audio_store) == 0
            audio_play_btn.icon = ft.Icons.PAUSE if audio_sched.is_playing else ft.Icons.PLAY_ARROW
            audio_play_btn.tooltip = "Pause audio" if audio_sched.is_playing else "Play audio"
        seg = audio_store.selected
        asset = session.lookup_asset(TRACK_AUDIO, seg.asset_id) if seg else None
        audio_title.value = asset.name if asset else "Select audio"
        audio_title.color = None if asset else ft.Colors.WHITE38

    def play_click(_e=None) -> None:
        video_sched.toggle()

    def audio_play_click(_e=None) -> None:
        if audio_sched is not None:
            audio_sched.toggle()

    play_btn.on_click = play_click
    audio_play_btn.on_click = audio_play_click

    def on_aspect_change(e) -> None:
        cfg.set_preview_aspect(aspect_dd.value)
        preview_slot.width, preview_slot.height = preview_size(aspect_dd.value)
        preview_slot.update()

    aspect_dd = ft.Dropdown(
        width=190,
        dense=True,
        value=aspect,
        options=[
            ft.dropdown.Option(key=ASPECT_VERTICAL, text="9:16 (Vertical)"),
            ft.dropdown.Option(key=ASPECT_HORIZONTAL, text="16:9 (Horizontal)"),
        ],
    )
    aspect_dd.on_change = on_aspect_change

    # ---------- Inspector (manual numeric edit) ----------
    insp_title = ft.Text("Edit video segment", weight=ft.FontWeight.BOLD)
    insp_fields: Dict[str, ft.TextField] = {
        "source_start": ft.TextField(label="Source start", width=130, dense=True),
        "duration": ft.TextField(label="Duration", width=130, dense=True),
        "timeline_start": ft.TextField(label="Timeline start", width=130, dense=True),
    }
    prev_btn = ft.IconButton(ft.Icons.SKIP_PREVIOUS, tooltip="Previous segment", icon_size=18)
    next_btn = ft.IconButton(ft.Icons.SKIP_NEXT, tooltip="Next segment", icon_size=18)
    inspector = ft.Container(
        visible=False,
        padding=8,
        border=ft.Border.all(1, ft.Colors.WHITE24),
        content=ft.Column(
            [
                ft.Row([insp_title, prev_btn, next_btn], spacing=4),
                ft.Row(list(insp_fields.values()), spacing=8),
            ],
            spacing=6,
        ),
    )
    inspector_segment_id: Optional[str] = None
    inspector_editing = False

    def update_inspector() -> None:
        nonlocal inspector_segment_id
        # Video selection wins when both tracks have one.
        seg = video_store.selected or audio_store.selected
        inspector_segment_id = seg.id if seg else None
        inspector.visible = seg is not None
        if seg is None or inspector_editing:
            return
        kind = session.owner_of(seg.id)
        prev_btn.disabled = session.track(kind).previous(seg.id) is None
        next_btn.disabled = session.track(kind).next(seg.id) is None
        insp_title.value = f"Edit {kind} segment"
        for name, field in insp_fields.items():
            field.value = f"{getattr(seg, name):g}"

    def _on_inspector_change(name: str) -> Callable:
        def _handler(e) -> None:
            nonlocal inspector_editing
            kind = session.owner_of(inspector_segment_id) if inspector_segment_id else None
            if kind is None:
                return
            try:
                value = float(str(e.control.value or "").strip())
            except ValueError:
                return
            inspector_editing = True
            try:
                session.edit_segment(kind, inspector_segment_id, **{name: value})
            finally:
                inspector_editing = False

        return _handler

    for _name, _field in insp_fields.items():
        _field.on_change = _on_inspector_change(_name)

    def _step(forward: bool) -> Callable:
        def _click(_e) -> None:
            session.select_adjacent(inspector_segment_id, forward=forward)

        return _click

    prev_btn.on_click = _step(False)
    next_btn.on_click = _step(True)

    # ---------- Timeline ----------
    video_row = ft.Stack(height=TRACK_ROW_H)
    audio_row = ft.Stack(height=TRACK_ROW_H)
    overlap_hints: Dict[str, ft.Text] = {
        TRACK_VIDEO: ft.Text("", size=11, color=ft.Colors.AMBER_200),
        TRACK_AUDIO: ft.Text("", size=11, color=ft.Colors.AMBER_200),
    }
    # segment id -> positioned wrapper inside its track row
    block_controls: Dict[str, ft.Container] = {}

    def _asset_name(kind: str, seg: Segment) -> str:
        asset = session.lookup_asset(kind, seg.asset_id)
        return asset.name if asset else "Clip"

    def _resize_handle(seg_id: str, edge: str) -> ft.Control:
        def _start(e) -> None:
            gx = _event_global_x(e)
            session.resize.start(seg_id, edge, gx if gx is not None else 0.0)

        def _update(e) -> None:
            gx = _event_global_x(e)
            if gx is not None:
                session.resize.move(gx)

        def _end(_e) -> None:
            session.resize.end()

        return ft.GestureDetector(
            mouse_cursor=ft.MouseCursor.RESIZE_LEFT_RIGHT,
            drag_interval=0,
            on_horizontal_drag_start=_start,
            on_horizontal_drag_update=_update,
            on_horizontal_drag_end=_end,
            content=ft.Container(width=HANDLE_W, bgcolor=ft.Colors.WHITE30),
        )

    def segment_block(kind: str, store: SegmentStore, seg: Segment) -> ft.Container:
        left, width = segment_rect(seg, px_per_sec)
        selected = store.selected_id == seg.id
        color = ft.Colors.GREEN_600 if kind == TRACK_AUDIO else ft.Colors.BLUE_600

        def _tap(_e) -> None:
            store.select(seg.id)

        def _drag_start(e) -> None:
            gx = _event_global_x(e)
            session.drag.start(seg.id, gx if gx is not None else 0.0)

        def _drag_update(e) -> None:
            gx = _event_global_x(e)
            if gx is not None:
                session.drag.move(gx)

        def _drag_end(_e) -> None:
            session.drag.end()

        def _delete(_e) -> None:
            session.delete_segment(kind, seg.id)

        body = ft.GestureDetector(
            mouse_cursor=ft.MouseCursor.GRAB,
            drag_interval=0,
            on_tap=_tap,
            on_horizontal_drag_start=_drag_start,
            on_horizontal_drag_update=_drag_update,
            on_horizontal_drag_end=_drag_end,
            expand=True,
            content=ft.Container(
                padding=ft.Padding(6, 4, 2, 4),
                content=ft.Row(
                    [
                        ft.Text(_asset_name(kind, seg), size=12, no_wrap=True, expand=True),
                        ft.IconButton(ft.Icons.CLOSE, icon_size=14, tooltip="Delete", on_click=_delete),
                    ],
                    spacing=2,
                ),
            ),
        )
        return ft.Container(
            left=left,
            top=4,
            width=max(float(HANDLE_W * 2), width),
            height=TRACK_ROW_H - 8,
            border_radius=6,
            bgcolor=ft.Colors.AMBER_600 if selected else color,
            border=ft.Border.all(2, ft.Colors.AMBER_200 if selected else ft.Colors.WHITE24),
            clip_behavior=ft.ClipBehavior.HARD_EDGE,
            content=ft.Row(
                [_resize_handle(seg.id, EDGE_START), body, _resize_handle(seg.id, EDGE_END)],
                spacing=0,
                vertical_alignment=ft.CrossAxisAlignment.STRETCH,
            ),
        )

    def rebuild_track(kind: str) -> None:
        store = session.track(kind)
        row = video_row if kind == TRACK_VIDEO else audio_row
        controls: List[ft.Control] = []
        for seg in store.segments:
            block = segment_block(kind, store, seg)
            block_controls[seg.id] = block
            controls.append(block)
        row.controls = controls

    def refresh_overlap_hint(kind: str) -> None:
        # Overlap is allowed; just tell the user.
        pairs = overlapping_pairs(session.track(kind).segments)
        overlap_hints[kind].value = f"{len(pairs)} overlapping pair(s)" if pairs else ""

    def refresh_geometry(kind: str) -> None:
        # Move/resize blocks in place; rebuilding them would drop the active gesture.
        for seg in session.track(kind).segments:
            block = block_controls.get(seg.id)
            if block is None:
                continue
            left, width = segment_rect(seg, px_per_sec)
            block.left = left
            block.width = max(float(HANDLE_W * 2), width)

    def refresh_timeline_width() -> None:
        w = timeline_width_px(session.timeline_end(), px_per_sec)
        video_row.width = w
        audio_row.width = w

    def on_store_change(store: SegmentStore, event: str) -> None:
        if event == EVENT_UPDATE:
            refresh_geometry(store.kind)
        else:
            rebuild_track(store.kind)
        refresh_overlap_hint(store.kind)
        refresh_timeline_width()
        update_inspector()
        refresh_transport()
        page.update()

    video_store.subscribe(on_store_change)
    audio_store.subscribe(on_store_change)

    timeline = ft.Container(
        expand=True,
        padding=8,
        content=ft.Column(
            [
                ft.Row([ft.Text("Video", weight=ft.FontWeight.BOLD), overlap_hints[TRACK_VIDEO]], spacing=8),
                ft.Row([video_row], scroll=ft.ScrollMode.AUTO),
                inspector,
                ft.Row([ft.Text("Audio", weight=ft.FontWeight.BOLD), overlap_hints[TRACK_AUDIO]], spacing=8),
                ft.Row([audio_row], scroll=ft.ScrollMode.AUTO),
            ],
            spacing=6,
            scroll=ft.ScrollMode.AUTO,
        ),
    )

    # ---------- Media bins ----------
    video_list = ft.ListView(height=170, spacing=4)
    audio_list = ft.ListView(height=170, spacing=4)

    def refresh_media() -> None:
        def _row(kind: str, asset) -> ft.Control:
            buttons = [
                ft.TextButton("+ Timeline", on_click=lambda _e, a=asset.id: session.add_to_timeline(kind, a)),
            ]
            if kind == TRACK_VIDEO:
                buttons.append(ft.TextButton("AutoCut", on_click=lambda _e, a=asset.id: autocut_one(a)))
            return ft.Column(
                [
                    ft.Text(asset.name, size=12, no_wrap=True),
                    ft.Text(
                        _fmt_time(asset.duration) if asset.has_duration else "Duration unknown",
                        size=11,
                        color=ft.Colors.WHITE54,
                    ),
                    ft.Row(buttons, spacing=0),
                ],
                spacing=0,
            )

        video_list.controls = [_row(TRACK_VIDEO, a) for a in session.registry(TRACK_VIDEO).assets()]
        audio_list.controls = [_row(TRACK_AUDIO, a) for a in session.registry(TRACK_AUDIO).assets()]
        page.update()

    def autocut_one(asset_id: str) -> None:
        _created, msg = session.autocut.apply_highlights(asset_id)
        if msg:
            snack(msg)

    def autocut_all_click(_e=None) -> None:
        _created, msg = session.autocut.apply_all()
        if msg:
            snack(msg)

    file_picker = ft.FilePicker()

    def _ingest(kind: str, paths: List[str]) -> None:
        registry = session.registry(kind)
        assets = registry.register_files(paths)
        if not assets:
            return
        try:
            ffprobe: Optional[str] = resolve_ffprobe(root)
        except FFmpegNotFound as ex:
            snack(str(ex))
            ffprobe = None
        if ffprobe:
            for asset in assets:
                try:
                    info = probe_media(ffprobe, str(asset.media_handle))
                    registry.on_metadata_loaded(asset.id, info.duration)
                except Exception as ex:
                    log.exception("probe failed: %s", ex)
                    snack(f"Could not read duration: {asset.name}")
        refresh_media()

    def import_click(kind: str) -> Callable:
        def _click(_e) -> None:
            async def _pick() -> None:
                picked = await file_picker.pick_files(
                    allow_multiple=True,
                    file_type=ft.FilePickerFileType.CUSTOM,
                    allowed_extensions=VIDEO_EXTENSIONS if kind == TRACK_VIDEO else AUDIO_EXTENSIONS,
                )
                if not picked:
                    return
                _ingest(kind, [f.path for f in picked if f.path])

            page.run_task(_pick)

        return _click

    # ---------- Layout ----------
    sidebar = ft.Container(
        width=260,
        padding=8,
        content=ft.Column(
            [
                ft.Text("Media", size=18, weight=ft.FontWeight.BOLD),
                ft.ElevatedButton("Upload videos", icon=ft.Icons.VIDEO_FILE, on_click=import_click(TRACK_VIDEO)),
                video_list,
                ft.ElevatedButton("Upload audio", icon=ft.Icons.AUDIO_FILE, on_click=import_click(TRACK_AUDIO)),
                audio_list,
            ],
            spacing=8,
        ),
    )
    header = ft.Row(
        [
            ft.Text("Untitled project", weight=ft.FontWeight.BOLD),
            ft.Row([aspect_dd, ft.ElevatedButton("AutoCut all videos", on_click=autocut_all_click)], spacing=8),
        ],
        alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
    )
    preview = ft.Row(
        [
            ft.Column([ft.Text("Preview", size=16), preview_slot, play_btn], spacing=6),
            ft.Column([ft.Text("Selected audio", size=16), audio_title, audio_play_btn], spacing=6),
        ],
        spacing=24,
        vertical_alignment=ft.CrossAxisAlignment.START,
    )

    page.add(
        ft.Row(
            [
                sidebar,
                ft.VerticalDivider(width=1),
                ft.Column([header, preview, ft.Divider(height=1), timeline], expand=True),
            ],
            expand=True,
            vertical_alignment=ft.CrossAxisAlignment.START,
        )
    )
    refresh_timeline_width()
    refresh_transport()
    page.update()


if __name__ == "__main__":
    ft.app(target=main)
