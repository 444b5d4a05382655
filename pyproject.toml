[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "seabattle-server"
version = "1.0.0"
description = "TCP server for a two-player Battleship game with chat, game invitations and game history"
requires-python = ">=3.10"
dependencies = []
keywords = ["battleship", "sea battle", "game server", "board game", "tcp", "asyncio"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[project.scripts]
seabattle-server = "seabattle_server.network:main"

[tool.hatch.build.targets.wheel]
packages = ["seabattle_server"]

[tool.pytest.ini_options]
addopts = "-ra"
