"""Device and network emulation profiles.

Viewport and user agent go through ``browser.new_context``; latency,
throughput and CPU slowdown are applied over a Chromium CDP session.
"""

import logging

from playwright.sync_api import BrowserContext, Page

from .models import DeviceProfile

log = logging.getLogger(__name__)


_MOBILE_UA = (
    'Mozilla/5.0 (Linux; Android 11; moto g power (2022)) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36'
)

_DESKTOP_UA = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)


DEVICE_PROFILES = {
    'desktop': DeviceProfile(
        name='desktop',
        viewport_width=1350,
        viewport_height=940,
        user_agent=_DESKTOP_UA,
    ),
    # Slow 4G on a mid-range phone.
    'mobile': DeviceProfile(
        name='mobile',
        viewport_width=412,
        viewport_height=823,
        user_agent=_MOBILE_UA,
        device_scale_factor=1.75,
        is_mobile=True,
        has_touch=True,
        latency_ms=150,
        download_kbps=1638.4,
        upload_kbps=750,
        cpu_slowdown=4,
    ),
}


def get_profile(name: str) -> DeviceProfile:
    """Look up a device profile by name."""
    try:
        return DEVICE_PROFILES[name]
    except KeyError:
        raise ValueError(f'Unknown device profile: {name}') from None


def context_options(profile: DeviceProfile) -> dict:
    """Build keyword arguments for browser.new_context()."""
    options = {
        'viewport': {'width': profile.viewport_width, 'height': profile.viewport_height},
        'device_scale_factor': profile.device_scale_factor,
        'is_mobile': profile.is_mobile,
        'has_touch': profile.has_touch,
    }
    if profile.user_agent:
        options['user_agent'] = profile.user_agent
    return options


def _kbps_to_bytes_per_second(kbps: float) -> float:
    # CDP uses -1 for "no limit".
    if not kbps:
        return -1
    return kbps * 1024 / 8


def apply_network_emulation(context: BrowserContext, page: Page, profile: DeviceProfile) -> bool:
    """Throttle network and CPU for the page. Returns True if applied."""
    if not profile.throttled:
        return False

    try:
        cdp = context.new_cdp_session(page)
        cdp.send('Network.enable')
        cdp.send('Network.emulateNetworkConditions', {
            'offline': False,
            'latency': profile.latency_ms,
            'downloadThroughput': _kbps_to_bytes_per_second(profile.download_kbps),
            'uploadThroughput': _kbps_to_bytes_per_second(profile.upload_kbps),
        })
        if profile.cpu_slowdown > 1:
            cdp.send('Emulation.setCPUThrottlingRate', {'rate': profile.cpu_slowdown})
    except Exception as exc:
        log.debug('Network emulation failed for profile %s: %s', profile.name, exc)
        return False

    log.debug('Applied %s emulation profile', profile.name)
    return True
