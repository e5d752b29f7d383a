"""
Resource Handlers
=================

One handler per AWS resource type. Each extends
:class:`~cloudsweep.core.base_resource.BaseResource` and supplies only the
remote calls for its type.

Available Handlers
------------------
EBSVolumes (``ebs``)
    Unattached EBS volumes.
EBSSnapshots (``snap``)
    EBS snapshots owned by the account.

Adding New Handlers
-------------------
1. Create a module in this package (e.g. ``eip.py``)
2. Extend ``BaseResource`` and set ``RESOURCE_NAME``, ``RESOURCE_LABEL``,
   ``CONFIG_KEY`` and the conflict/not-found error codes
3. Implement ``list_candidates``, ``delete_resource`` and
   ``wait_for_deletion``
4. Register the class in ``ALL_RESOURCES`` below and its config key in
   ``cloudsweep.core.config.RESOURCE_CONFIG_KEYS``
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Type

from cloudsweep.core.base_resource import BaseResource
from cloudsweep.core.exceptions import InvalidResourceTypeError
from cloudsweep.resources.ebs import EBSVolumes
from cloudsweep.resources.ebs_snapshots import EBSSnapshots

# Registry of handlers keyed by command-line name, in processing order
ALL_RESOURCES: Dict[str, Type[BaseResource]] = {
    EBSVolumes.RESOURCE_NAME: EBSVolumes,
    EBSSnapshots.RESOURCE_NAME: EBSSnapshots,
}


def _validate_names(names: Sequence[str]) -> None:
    unknown = [name for name in names if name not in ALL_RESOURCES]
    if unknown:
        raise InvalidResourceTypeError(
            f"Unknown resource type(s): {', '.join(unknown)}",
            details={"valid": list(ALL_RESOURCES)},
        )


def get_resource_classes(
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
) -> List[Type[BaseResource]]:
    """
    Select handler classes by name.

    Parameters
    ----------
    include : sequence of str, optional
        Only these resource types. ``"all"`` or empty means every type.
    exclude : sequence of str, optional
        Every resource type except these.

    Returns
    -------
    list of type
        Handler classes in registry order.

    Raises
    ------
    InvalidResourceTypeError
        If a name is unknown or both include and exclude are given.
    """
    include = [name for name in include or [] if name != "all"]
    exclude = list(exclude or [])

    if include and exclude:
        raise InvalidResourceTypeError(
            "Specify either resource types to include or to exclude, not both"
        )

    _validate_names(include)
    _validate_names(exclude)

    return [
        cls
        for name, cls in ALL_RESOURCES.items()
        if (not include or name in include) and name not in exclude
    ]


__all__ = [
    "ALL_RESOURCES",
    "EBSSnapshots",
    "EBSVolumes",
    "get_resource_classes",
]
