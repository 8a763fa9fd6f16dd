[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "concur"
version = "0.1.0"
description = "Concurrency building blocks: channels, broadcast rings, RCU maps, hazard-pointer lists and more"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "concurrency",
    "threads",
    "channel",
    "broadcast",
    "rcu",
    "hazard-pointers",
    "hashmap",
    "coroutines",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
concur-coro = "concur.coro:main"
concur-fiber = "concur.fiber:main"
concur-httpd = "concur.httpd:main"
concur-hp-list = "concur.hp_list:main"

[tool.hatch.build.targets.wheel]
packages = ["concur"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
