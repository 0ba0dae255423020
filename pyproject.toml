[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mobikit"
version = "0.1.0"
description = "Low-level tools for MOBI e-books: binary buffers, PalmDOC and HUFF/CDIC decompression, tamper-proof key records and INDX index parsing"
requires-python = ">=3.10"
dependencies = []
keywords = ["mobi", "mobipocket", "kindle", "ebook", "palmdoc", "huffcdic", "indx", "inflections"]
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
    "Topic :: Text Processing :: General",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mobikit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
