[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "feedwatch"
version = "0.1.0"
description = "Threat-intelligence feed collection and STIX 2.1 normalisation services backed by Redis streams and MongoDB"
requires-python = ">=3.10"
keywords = [
    "threat-intelligence",
    "stix",
    "ioc",
    "redis-streams",
    "mongodb",
    "security",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Information Technology",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "redis",
    "pymongo",
    "requests",
    "flask",
    "werkzeug",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
feedwatch-collector = "feedwatch.feed_service:main"
feedwatch-normalizer = "feedwatch.normalizer_service:main"

[tool.hatch.build.targets.wheel]
packages = ["feedwatch"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
