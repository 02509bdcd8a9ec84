"""
Desktop notification support for mediashrink.

Sends system notifications when a batch finishes.
Uses notify-send (libnotify) as primary method with plyer as fallback.
"""

import logging
import shutil
import subprocess
from typing import Literal

logger = logging.getLogger(__name__)

APP_NAME = "mediashrink"


def _has_notify_send() -> bool:
    """Check if notify-send is available."""
    return shutil.which("notify-send") is not None


def _has_plyer() -> bool:
    """Check if plyer is available."""
    try:
        from plyer import notification  # noqa: F401

        return True
    except ImportError:
        return False


NOTIFY_SEND_AVAILABLE = _has_notify_send()
PLYER_AVAILABLE = _has_plyer()


def send_notification(
    title: str,
    message: str,
    urgency: Literal["low", "normal", "critical"] = "normal",
    icon: str = "video-x-generic",
    timeout: int = 10,
) -> bool:
    """
    Send a desktop notification.

    Tries notify-send first, then plyer if it is installed.

    Args:
        title: Notification title.
        message: Notification body text.
        urgency: Urgency level - "low", "normal", or "critical".
        icon: XDG icon name or absolute path.
        timeout: Notification timeout in seconds.

    Returns:
        True if the notification was sent.
    """
    if NOTIFY_SEND_AVAILABLE:
        cmd = [
            "notify-send",
            "--urgency",
            urgency,
            "--app-name",
            APP_NAME,
            "--icon",
            icon,
            "--expire-time",
            str(timeout * 1000),
            title,
            message,
        ]
        try:
            subprocess.run(cmd, check=True, capture_output=True, timeout=5)
            return True
        except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            logger.debug("notify-send failed error=%s", e)

    if PLYER_AVAILABLE:
        try:
            from plyer import notification

            notification.notify(
                title=title,
                message=message,
                app_name=APP_NAME,
                app_icon=icon if icon.startswith("/") else None,
                timeout=timeout,
            )
            return True
        except Exception as e:  # plyer backends raise anything from NotImplementedError to dbus errors
            logger.debug("plyer notification failed error=%s", e)

    return False


def notify_success(done_count: int, total_time: str) -> bool:
    """Notify that every file was transcoded or legitimately skipped."""
    if done_count == 1:
        message = f"Transcoded 1 file in {total_time}"
    else:
        message = f"Transcoded {done_count} files in {total_time}"
    return send_notification(
        title=f"{APP_NAME} - Transcoding Complete",
        message=message,
        urgency="normal",
        icon="dialog-information",
    )


def notify_partial(ok_count: int, failed_count: int, skipped_count: int, total_time: str) -> bool:
    """Notify a run that ended with failed or skipped files."""
    parts = []
    if ok_count > 0:
        parts.append(f"{ok_count} transcoded")
    if failed_count > 0:
        parts.append(f"{failed_count} failed")
    if skipped_count > 0:
        parts.append(f"{skipped_count} skipped")

    message = ", ".join(parts) + f" ({total_time})"

    urgency: Literal["low", "normal", "critical"] = "normal" if failed_count == 0 else "critical"
    icon = "dialog-information" if failed_count == 0 else "dialog-warning"

    return send_notification(
        title=f"{APP_NAME} - Processing Complete",
        message=message,
        urgency=urgency,
        icon=icon,
    )


def notify_interrupted() -> bool:
    """Send a notification when processing was interrupted by a signal."""
    return send_notification(
        title=f"{APP_NAME} - Interrupted",
        message="Processing was interrupted",
        urgency="normal",
        icon="dialog-warning",
    )


def check_notification_support() -> dict:
    """
    Check available notification methods.

    Returns:
        Dict with 'notify_send', 'plyer' and 'any' booleans.
    """
    return {
        "notify_send": NOTIFY_SEND_AVAILABLE,
        "plyer": PLYER_AVAILABLE,
        "any": NOTIFY_SEND_AVAILABLE or PLYER_AVAILABLE,
    }
