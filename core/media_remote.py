# core/media_remote.py
import ctypes
import itertools
import threading
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from .models import NowPlayingSnapshot

try:
    import objc
except ImportError:  # PyObjC only ships on macOS
    objc = None


MEDIA_REMOTE_FRAMEWORK = "/System/Library/PrivateFrameworks/MediaRemote.framework/MediaRemote"
LIBDISPATCH = "/usr/lib/system/libdispatch.dylib"
LIBSYSTEM = "/usr/lib/libSystem.B.dylib"
NOW_PLAYING_SYMBOL = "MRMediaRemoteGetNowPlayingInfo"

KEY_TITLE = "kMRMediaRemoteNowPlayingInfoTitle"
KEY_ARTIST = "kMRMediaRemoteNowPlayingInfoArtist"
KEY_ARTWORK = "kMRMediaRemoteNowPlayingInfoArtworkData"
KEY_RATE = "kMRMediaRemoteNowPlayingInfoPlaybackRate"

FETCH_TIMEOUT = 1.0
BLOCK_HAS_SIGNATURE = 1 << 30


class MediaRemoteError(Exception):
    pass


class SymbolResolutionError(MediaRemoteError):
    pass


class MediaRemoteTimeout(MediaRemoteError):
    pass


class NowPlayingSource(ABC):
    @abstractmethod
    def fetch(self) -> Optional[NowPlayingSnapshot]:
        """Return what the source currently reports, or None if nothing is playing."""


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _rate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _bytes(value: Any) -> Optional[bytes]:
    if value is None:
        return None
    try:
        data = bytes(value)
    except (TypeError, ValueError):
        return None
    return data or None


def snapshot_from_payload(payload: Optional[Mapping]) -> Optional[NowPlayingSnapshot]:
    if not payload:
        return None

    return NowPlayingSnapshot(
        title=_text(payload.get(KEY_TITLE)),
        artist=_text(payload.get(KEY_ARTIST)),
        artwork_data=_bytes(payload.get(KEY_ARTWORK)),
        playback_rate=_rate(payload.get(KEY_RATE)),
    )


class _BlockDescriptor(ctypes.Structure):
    _fields_ = [
        ("reserved", ctypes.c_ulong),
        ("size", ctypes.c_ulong),
        ("copy_helper", ctypes.c_void_p),
        ("dispose_helper", ctypes.c_void_p),
        ("signature", ctypes.c_char_p),
    ]


class _BlockLiteral(ctypes.Structure):
    _fields_ = [
        ("isa", ctypes.c_void_p),
        ("flags", ctypes.c_int),
        ("reserved", ctypes.c_int),
        ("invoke", ctypes.c_void_p),
        ("descriptor", ctypes.POINTER(_BlockDescriptor)),
    ]


_NOW_PLAYING_CALLBACK = ctypes.CFUNCTYPE(None, ctypes.c_void_p, ctypes.c_void_p)


class _InFlightRequests:
    """Keeps each request's callback, block and descriptor alive until its reply.

    A request that timed out stays registered until MediaRemote finally
    calls back. Answered requests are released on a later fetch, never from
    inside their own callback.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._next_id = itertools.count()
        self._requests = {}

    def add(self, done: threading.Event, keepalive) -> int:
        with self._lock:
            request_id = next(self._next_id)
            self._requests[request_id] = (done, keepalive)
        return request_id

    def reap(self) -> int:
        with self._lock:
            answered = [k for k, (done, _) in self._requests.items() if done.is_set()]
            for k in answered:
                del self._requests[k]
        return len(answered)

    def __len__(self):
        with self._lock:
            return len(self._requests)


class MediaRemoteSource(NowPlayingSource):
    """Reads the system now-playing registry from the private MediaRemote framework.

    Nothing is linked at import time. The framework and its entry point are
    looked up on the first fetch; a failed lookup raises
    SymbolResolutionError and is attempted again on the next fetch.
    """

    def __init__(self, framework_path: str = MEDIA_REMOTE_FRAMEWORK, timeout: float = FETCH_TIMEOUT):
        self.framework_path = framework_path
        self.timeout = timeout
        self._get_now_playing = None
        self._global_queue = None
        self._stack_block_isa = None
        self._in_flight = _InFlightRequests()

    def _resolve(self):
        if self._get_now_playing is not None:
            return

        if objc is None:
            raise SymbolResolutionError("PyObjC is not available")

        try:
            framework = ctypes.CDLL(self.framework_path)
            dispatch = ctypes.CDLL(LIBDISPATCH)
            libsystem = ctypes.CDLL(LIBSYSTEM)
        except OSError as e:
            raise SymbolResolutionError(f"cannot load {self.framework_path}: {e}") from e

        try:
            get_now_playing = getattr(framework, NOW_PLAYING_SYMBOL)
            get_queue = dispatch.dispatch_get_global_queue
            stack_block_isa = ctypes.c_void_p.in_dll(libsystem, "_NSConcreteStackBlock")
        except (AttributeError, ValueError) as e:
            raise SymbolResolutionError(f"cannot resolve {NOW_PLAYING_SYMBOL}: {e}") from e

        get_queue.argtypes = [ctypes.c_long, ctypes.c_ulong]
        get_queue.restype = ctypes.c_void_p
        get_now_playing.argtypes = [ctypes.c_void_p, ctypes.c_void_p]
        get_now_playing.restype = None

        self._global_queue = get_queue(0, 0)
        self._stack_block_isa = stack_block_isa
        self._get_now_playing = get_now_playing

    def fetch(self) -> Optional[NowPlayingSnapshot]:
        self._resolve()
        self._in_flight.reap()

        done = threading.Event()
        result: dict = {"payload": None, "error": None}

        @_NOW_PLAYING_CALLBACK
        def _callback(_block, payload_ptr):
            try:
                if payload_ptr:
                    payload = objc.objc_object(c_void_p=payload_ptr)
                    result["payload"] = dict(payload)
            except Exception as e:
                result["error"] = e
            finally:
                done.set()

        descriptor = _BlockDescriptor()
        descriptor.reserved = 0
        descriptor.size = ctypes.sizeof(_BlockLiteral)
        descriptor.copy_helper = 0
        descriptor.dispose_helper = 0
        descriptor.signature = b"v@?@"

        block = _BlockLiteral()
        block.isa = self._stack_block_isa
        block.flags = BLOCK_HAS_SIGNATURE
        block.reserved = 0
        block.invoke = ctypes.cast(_callback, ctypes.c_void_p).value
        block.descriptor = ctypes.pointer(descriptor)

        self._in_flight.add(done, (_callback, descriptor, block))
        self._get_now_playing(self._global_queue, ctypes.byref(block))

        if not done.wait(self.timeout):
            raise MediaRemoteTimeout(f"no reply from MediaRemote after {self.timeout}s")

        if result["error"] is not None:
            raise MediaRemoteError("MediaRemote callback failed") from result["error"]

        return snapshot_from_payload(result["payload"])
