# distillery

Tools for handling binary releases. The package can:

- work out what kind of file a release asset is from its name (archive,
  binary, installer, checksum, signature, key, SBOM or data),
- extract a downloaded asset (tar, zip, gzip, bzip2 and xz, nested as in
  `.tar.gz`) into a temporary directory,
- check a file against a checksum file,
- parse cosign bundles and verify ECDSA signatures,
- read release metadata from GitLab, the HashiCorp releases service and
  the Homebrew formulae API,
- report on its own directories and clean up orphaned binaries.

## Installation

```
pip install distillery
```

## Command line

```
distillery info
distillery info --config ~/.config/distillery.yaml
distillery clean
distillery clean --no-dry-run
distillery --version
```

- `info` loads the configuration and prints the version, the operating
  system and architecture, and the home, bin, opt and cache directories.
  It warns you when the bin directory is not on your `PATH`. The
  configuration file is taken from `-c`/`--config`. If that option is not
  given, it comes from the `DISTILLERY_CONFIG` environment variable, and
  failing that from `distillery.yaml` in your user configuration directory.
- `clean` walks `~/.distillery/bin` and lists every regular file there
  that no symlink in that directory points to. It removes those files only
  when you pass `--no-dry-run`.

Every command takes these logging options:

- `--log-level` (`-l`, or the `LOG_LEVEL` environment variable): `trace`,
  `debug`, `info` (the default), `warn` or `error`
- `--log-caller`
- `--log-disable-color`
- `--log-full-timestamp`

## Configuration

The configuration file may be YAML (`.yaml`) or TOML (`.toml`). If the file
does not exist, the defaults are used. Any other suffix raises `ValueError`.

```yaml
path: /home/me/.distillery
cache_path: /home/me/.cache
default_source: github
aliases:
  tool: example-owner/tool
  other: example-owner/other@3.29.3
providers:
  internal:
    provider: gitlab
    base_url: https://gitlab.example.com/api/v4
```

```python
from distillery.config import load_config

cfg = load_config("distillery.yaml")
cfg.get_alias("other")      # Alias(name="example-owner/other", version="3.29.3", flags={})
cfg.opt_dir()               # "<path>/opt"
cfg.cache_dir()             # "<cache_path>/distillery"
cfg.mkdir_all()             # creates bin, opt, cache, metadata and downloads directories
```

`load_config` fills in these defaults:

| setting          | default                          |
|------------------|----------------------------------|
| `language`       | `en`                             |
| `default_source` | `github`                         |
| `path`           | `~/.distillery`                  |
| `cache_path`     | the user cache directory         |
| `bin_path`       | `<path>/bin`                     |

An alias in YAML may be written as a `name[@version]` string or as a
mapping with `name`, `version` and `flags`. In TOML, a string alias is taken
whole as the name, with version `latest`.

## Library use

### Assets

```python
from distillery.asset import Asset, AssetType, classify

classify("tool-linux-amd64.tar.gz")         # AssetType.ARCHIVE
classify("checksums.txt")                   # AssetType.CHECKSUM

asset = Asset("tool-linux-amd64.tar.gz", "tool", "linux", "amd64", "1.0.0")
asset.download_path = "/tmp/tool-linux-amd64.tar.gz"
asset.extract()                             # fills asset.temp_dir and asset.files
for f in asset.files:
    print(f.name)
asset.cleanup()                             # removes asset.temp_dir
```

For a key, signature or checksum asset, `Asset.parent_type` holds the type of
the file it belongs to. `Asset.checksum_type()` tells whether a checksum file
covers one file (`ChecksumType.FILE`) or many (`ChecksumType.MULTI`).
Archive members whose paths would fall outside the extraction directory are
rejected by `sanitize_archive_path`. An empty tar or zip archive raises
`ValueError`.

### Checksums

```python
import hashlib
from distillery.checksum import compute_file_hash, compare_hash_with_checksum_file

compute_file_hash("tool", hashlib.sha256)
compare_hash_with_checksum_file("tool", "/tmp/tool", "/tmp/checksums.txt", hashlib.sha256)
```

Each line of the checksum file holds `<hash> [<name>]`. A leading `*` on the
name is ignored. A line with no name applies to the file being checked.

### Signatures

```python
from distillery.cosign import parse_bundle, parse_public_key, hash_data, verify_signature

key = parse_public_key(pem_bytes)           # a PEM public key or certificate, ECDSA only
verify_signature(key, hash_data(data), base64_signature)   # True or False
```

### Release APIs

```python
from distillery.clients.gitlab import GitLabClient
from distillery.clients.hashicorp import HashicorpClient, ListReleasesOptions
from distillery.clients.homebrew import HomebrewClient

gitlab = GitLabClient()
gitlab.token = "token"                      # sent as PRIVATE-TOKEN
gitlab.list_releases("group/project")
gitlab.get_latest_release("group/project")
gitlab.get_release("group/project", "v1.0.0")

hashicorp = HashicorpClient()
hashicorp.list_products()
hashicorp.list_releases("terraform", ListReleasesOptions(pre_releases=True))
hashicorp.get_version("terraform", "1.9.0")

HomebrewClient().get_formula("jq")
```

Each client takes an optional `requests.Session`. A response that is not
valid JSON raises `ValueError`. `GitLabClient.base_url` can be changed to
point at another GitLab instance.

## What it does not do

The package does not download assets and does not install, list or
uninstall binaries. It has only the `info` and `clean` commands, and it
has no client for GitHub releases. Extraction stops once the files are in
the temporary directory, and nothing is copied into the opt or bin
directories.

## Development

```
pip install -e .[test]
pytest
```