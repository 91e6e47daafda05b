# core/scraper.py
import json
import urllib.parse
from typing import Any, Mapping, Optional

from .debug import debug_log
from .models import NowPlayingSnapshot

PLAYER_URL = "https://music.youtube.com"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Safari/605.1.15"
)
BRIDGE_NAME = "observer"
ARTWORK_SUFFIX = "=w1200-h1200-l100-rj"
UNKNOWN_ARTIST = "Unknown Artist"
SUBTITLE_DELIMITER = "•"

# Runs in the page once the document is ready. Needs qwebchannel.js loaded first.
OBSERVER_SCRIPT = r"""
(function () {
    let bridge = null;
    let lastPosted = "";

    function readPlayerBar() {
        const title = document.querySelector('yt-formatted-string.title')?.innerText;
        const subtitle = document.querySelector(
            'span.subtitle.style-scope.ytmusic-player-bar yt-formatted-string'
        )?.innerText;
        const art = document.querySelector('img.style-scope.ytmusic-player-bar');
        return {
            title: title || "",
            artist: subtitle || "",
            artwork: art ? art.src : ""
        };
    }

    function post() {
        const record = readPlayerBar();
        if (!record.title || !bridge) {
            return;
        }
        const body = JSON.stringify(record);
        if (body === lastPosted) {
            return;
        }
        lastPosted = body;
        bridge.post(body);
    }

    function initObserver() {
        const target = document.querySelector('ytmusic-player-bar');
        if (!target) {
            setTimeout(initObserver, 1000);
            return;
        }
        const observer = new MutationObserver(post);
        observer.observe(target, { childList: true, subtree: true, characterData: true });
        post();
    }

    new QWebChannel(qt.webChannelTransport, function (channel) {
        bridge = channel.objects.%(bridge)s;
        initObserver();
    });
})();
""" % {"bridge": BRIDGE_NAME}


def primary_artist(subtitle: Any) -> str:
    """First part of a "Artist • Album • Year" subtitle, or UNKNOWN_ARTIST."""
    if not isinstance(subtitle, str) or SUBTITLE_DELIMITER not in subtitle:
        return UNKNOWN_ARTIST
    artist = subtitle.split(SUBTITLE_DELIMITER, 1)[0].strip()
    return artist or UNKNOWN_ARTIST


def upscale_artwork_url(url: Any) -> str:
    if not isinstance(url, str):
        return ""
    url = url.strip()
    try:
        scheme = urllib.parse.urlparse(url).scheme
    except ValueError:
        return ""
    if scheme not in ("http", "https"):
        return ""
    return url.split("=", 1)[0] + ARTWORK_SUFFIX


def parse_message(body: Any) -> Optional[NowPlayingSnapshot]:
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except ValueError:
            debug_log(f"scraper: dropping non-JSON message {body!r:.120}")
            return None

    if not isinstance(body, Mapping):
        debug_log(f"scraper: dropping message of type {type(body).__name__}")
        return None

    title = body.get("title")
    if not isinstance(title, str) or not title.strip():
        return None

    return NowPlayingSnapshot(
        title=title.strip(),
        artist=primary_artist(body.get("artist")),
        artwork_url=upscale_artwork_url(body.get("artwork")) or None,
    )
