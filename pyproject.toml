[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "concurlab"
version = "0.1.0"
description = "A caching HTTP proxy with subscriber fan-out, plus thread-synchronisation experiments: bounded queues, fine-grained list locking, spin locks and cooperative threads."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "proxy",
    "http",
    "cache",
    "threading",
    "concurrency",
    "queue",
    "spinlock",
    "mutex",
    "scheduler",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Education",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
concurlab-proxy = "concurlab.server:main"
concurlab-liststress = "concurlab.liststress:main"
concurlab-counter-bench = "concurlab.counter_bench:main"
concurlab-queue-bench = "concurlab.queue_bench:main"
concurlab-uthreads = "concurlab.uthreads:main"

[tool.hatch.build.targets.wheel]
packages = ["concurlab"]

[tool.hatch.build.targets.sdist]
include = ["concurlab", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
