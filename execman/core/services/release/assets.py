"""
Asset selection — pick the one release asset built for this platform.

Naming templates, tried in order::

    {name}_{version}_{os}_{arch}.{ext}
    {name}-{version}-{os}-{arch}.{ext}
    {name}_{os}_{arch}.{ext}
    {name}-{os}-{arch}.{ext}

``ext`` is ``zip`` on windows and ``tar.gz`` elsewhere. ``{version}``
matches the tag both as-is and without a leading ``v`` (GoReleaser
drops it). The first template with exactly one match wins; more than
one match within a template is ambiguous and rejected.
"""

from __future__ import annotations

import logging

from execman.core.errors import NoMatchingAssetError
from execman.core.models.release import Asset, PlatformTarget

logger = logging.getLogger(__name__)

ASSET_TEMPLATES = (
    "{name}_{version}_{os}_{arch}.{ext}",
    "{name}-{version}-{os}-{arch}.{ext}",
    "{name}_{os}_{arch}.{ext}",
    "{name}-{os}-{arch}.{ext}",
)


def _version_variants(version: str) -> set[str]:
    variants = {version}
    if version[:1] in ("v", "V") and len(version) > 1:
        variants.add(version[1:])
    return variants


def candidate_names(template: str, name: str, version: str, target: PlatformTarget) -> set[str]:
    """Lower-cased asset names a template accepts."""
    return {
        template.format(
            name=name,
            version=v,
            os=target.os_name,
            arch=target.arch,
            ext=target.archive_ext,
        ).lower()
        for v in _version_variants(version)
    }


def select_asset(
    assets: list[Asset],
    name: str,
    version: str,
    target: PlatformTarget,
) -> Asset:
    """Select the asset for ``target``.

    Args:
        assets: The release's assets, in API order.
        name: Executable name (the repository name).
        version: Release tag.
        target: Platform to match.

    Raises:
        NoMatchingAssetError: No template matched, or one matched
            several assets. Carries every asset name.
    """
    available = [a.name for a in assets]

    for template in ASSET_TEMPLATES:
        wanted = candidate_names(template, name, version, target)
        matches = [a for a in assets if a.name.lower() in wanted]

        if len(matches) == 1:
            logger.debug("Asset %s matched template %s", matches[0].name, template)
            return matches[0]
        if len(matches) > 1:
            raise NoMatchingAssetError(
                str(target), available, ambiguous=[a.name for a in matches]
            )

    raise NoMatchingAssetError(str(target), available)
