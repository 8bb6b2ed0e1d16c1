[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fcshim"
version = "0.1.0"
description = "Host and guest helpers for running containers inside microVMs: stub drives, VM and bundle directories, stdio proxying and task management"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["microvm", "containers", "cpuset", "oci", "bundle", "stdio", "proxy"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["fcshim"]

[tool.pytest.ini_options]
addopts = "-ra"
