"""Bundle image resolution for the upgrade chain."""

from typing import Callable, List, Optional, Sequence


def resolve_bundles(
    bundles: Sequence[str],
    no_build: bool,
    hybridize: Optional[Callable[[str], str]] = None,
) -> List[str]:
    """Returns the images to put in the catalog, in upgrade-chain order.

    Every bundle but the last is used as-is. The last one is replaced by the
    image ``hybridize`` returns for it, unless ``no_build`` is set.
    """
    resolved = list(bundles)
    if no_build or not resolved:
        return resolved

    if hybridize is None:
        raise ValueError("A hybridize callback is required unless no_build is set.")

    resolved[-1] = hybridize(resolved[-1])
    return resolved
