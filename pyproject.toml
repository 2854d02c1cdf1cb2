[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distillery"
version = "1.0.0"
description = "Classify and extract release assets, verify checksums and signatures, and query release APIs"
requires-python = ">=3.11"
keywords = ["releases", "assets", "checksum", "cosign", "gitlab", "homebrew", "hashicorp"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
    "Topic :: Utilities",
]
dependencies = [
    "pyyaml>=6.0",
    "requests>=2.31",
    "cryptography>=41.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.24",
]

[project.scripts]
distillery = "distillery.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["distillery"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
ignore_missing_imports = true
