"""User-Agent classification into device, browser and OS."""

from dataclasses import dataclass

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ClientInfo:
    device: str = UNKNOWN
    browser: str = UNKNOWN
    os: str = UNKNOWN


def _detect_browser(ua: str) -> str:
    # Order matters: Edge and Opera also advertise Chrome, Chrome advertises Safari
    if "edg/" in ua:
        return "Edge"
    if "opr/" in ua or "opera" in ua:
        return "Opera"
    if "chrome/" in ua or "crios/" in ua:
        return "Chrome"
    if "firefox/" in ua or "fxios/" in ua:
        return "Firefox"
    if "safari/" in ua:
        return "Safari"
    return UNKNOWN


def _detect_device(ua: str) -> str:
    if "ipad" in ua or "tablet" in ua:
        return "Tablet"
    if "mobile" in ua or "iphone" in ua or "android" in ua:
        return "Mobile"
    return "Desktop"


def _detect_os(ua: str) -> str:
    if "windows" in ua:
        return "Windows"
    if "iphone" in ua or "ipad" in ua or "ios" in ua:
        return "iOS"
    if "android" in ua:
        return "Android"
    if "mac os" in ua or "macintosh" in ua:
        return "macOS"
    if "linux" in ua:
        return "Linux"
    return UNKNOWN


def parse_user_agent(user_agent: str | None) -> ClientInfo:
    """Classify a raw User-Agent header.

    An empty header gives an all-Unknown ClientInfo.
    """
    if not user_agent:
        return ClientInfo()
    ua = user_agent.lower()
    return ClientInfo(
        device=_detect_device(ua),
        browser=_detect_browser(ua),
        os=_detect_os(ua),
    )
