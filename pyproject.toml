[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kcplens"
version = "0.1.0"
description = "Terminal browser for kcp workspaces, API exports and bindings, sync targets and resources"
requires-python = ">=3.10"
keywords = ["kcp", "kubernetes", "workspaces", "tui", "kubeconfig"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml",
    "requests",
    "blessed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
kcplens = "kcplens.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["kcplens"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
