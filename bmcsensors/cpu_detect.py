"""Detection of PECI CPU clients through sysfs and export of their devices."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Sequence

from .cpu_naming import CpuConfig, CpuState

log = logging.getLogger(__name__)

PECI_DEV_PATH = "/sys/bus/peci/devices/"

_DIMM_PATTERN = r"peci_cpu.dimmtemp.+/hwmon/hwmon\d+/name$"
_CPU_PATTERN = r"peci_cpu.cputemp.+/hwmon/hwmon\d+/name$"


def _find_files(root: Path, pattern: str, max_depth: int) -> list[Path]:
    regex = re.compile(pattern)
    found: list[Path] = []
    if not root.is_dir():
        return found
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        relative_dir = Path(dirpath).relative_to(root)
        depth = len(relative_dir.parts)
        if depth >= max_depth:
            dirnames.clear()
        for filename in filenames:
            relative = (relative_dir / filename).as_posix()
            if regex.search(relative):
                found.append(Path(dirpath) / filename)
    return sorted(found)


def dimm_ready(pkg_config: Sequence[int]) -> bool:
    """True if a DIMM temperature package reading shows a DIMM is present.

    Both 0 and 0xFF mean "no DIMM", depending on CPU generation.
    """
    return any(byte not in (0, 0xFF) for byte in pkg_config[:2])


def export_device(config: CpuConfig, peci_dev_path: str | Path = PECI_DEV_PATH) -> bool:
    """Register the CPU as a peci-client device, re-creating it if already present."""
    root = Path(peci_dev_path)
    addr_hex = f"{config.addr:x}"
    bus_str = str(config.bus)
    parameters = f"peci-client 0x{addr_hex}"
    bus_dir = root / f"peci-{bus_str}"
    del_device = bus_dir / "delete_device"
    new_device = bus_dir / "new_device"
    new_client = root / f"{bus_str}-{addr_hex}" / "driver"

    for entry in sorted(bus_dir.iterdir()):
        if not entry.is_dir():
            continue
        if entry.name.startswith(bus_str) and entry.name.endswith(addr_hex):
            log.debug("%s on bus %s is already exported", parameters, bus_str)
            try:
                del_device.write_text(parameters)
            except OSError:
                log.error("Error opening %s", del_device)
                return False
            break

    try:
        new_device.write_text(parameters)
    except OSError:
        log.error("Error opening %s", new_device)
        return False

    if not new_client.exists():
        log.error("Error creating %s", new_client)
        return False

    log.info("%s on bus %s is exported", parameters, bus_str)
    return True


def detect_state_sysfs(
    config: CpuConfig, peci_dev_path: str | Path = PECI_DEV_PATH
) -> int | None:
    """Update ``config.state`` from the hwmon devices the PECI bus exposes.

    Returns the number of seconds to wait before creating sensors (0 if no
    state was detected, in which case a bus rescan is requested), or None if
    the rescan file cannot be opened and sysfs detection is unavailable.
    """
    root = Path(peci_dev_path)
    rescan_path = root.parent / "rescan"
    try:
        rescan = open(rescan_path, "w")
    except OSError:
        return None
    with rescan:
        search = root / f"peci-{config.bus:x}" / f"{config.bus:x}-{config.addr:x}"
        if _find_files(search, _DIMM_PATTERN, 3):
            config.state = CpuState.READY
            return 1
        if _find_files(search, _CPU_PATTERN, 3):
            config.state = CpuState.ON
            return 3
        rescan.write("1")
        return 0