[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cipherchat"
version = "0.1.0"
description = "WebSocket chat room with bcrypt-protected accounts and RSA-encrypted private messages"
requires-python = ">=3.10"
keywords = ["chat", "websocket", "rsa", "end-to-end", "encryption", "bcrypt"]
classifiers = [
    "Development Status :: 3 - Alpha",
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
    "Topic :: Communications :: Chat",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography>=41",
    "bcrypt>=4.0",
    "websockets>=12.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[project.scripts]
cipherchat-client = "cipherchat.client:main"
cipherchat-server = "cipherchat.server:main"

[tool.hatch.build.targets.wheel]
packages = ["cipherchat"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
