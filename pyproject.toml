[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "timesync-bot"
version = "0.1.0"
description = "Meeting-time polls for chat groups: slot planning, availability voting and result messages"
requires-python = ">=3.10"
dependencies = []
keywords = ["scheduling", "availability", "polls", "meetings", "chat bot"]
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
    "Topic :: Office/Business :: Scheduling",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["timesync_bot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
