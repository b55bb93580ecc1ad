[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "servstats"
version = "0.1.0"
description = "In-process service statistics: callback counters, regex key caching, counter limit headers, LRU maps and quantile stat maps."
requires-python = ">=3.10"
dependencies = []
keywords = ["stats", "counters", "monitoring", "metrics", "quantiles", "lru"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["servstats"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
