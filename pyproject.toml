[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bmcsensors"
version = "0.1.0"
description = "Board management controller sensor logic: hwmon/IIO, CPU PECI and IPMB sensor discovery and decoding"
requires-python = ">=3.10"
dependencies = []
keywords = ["bmc", "hwmon", "iio", "ipmb", "ipmi", "sdr", "peci", "sensors"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: System :: Hardware",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bmcsensors"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
