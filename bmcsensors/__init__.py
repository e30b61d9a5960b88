"""Discovery, decoding and reading of hwmon/IIO, CPU PECI and IPMB sensors for board management controllers."""

__version__ = "0.1.0"