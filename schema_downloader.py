# Downloads the pinned Minecraft Bedrock schema archive for use with `schema_compiler.py`
import io
import shutil
import tarfile
from pathlib import Path

import requests

# Settings
REPO_OWNER = "Blockception"
REPO_NAME = "Minecraft-bedrock-json-schemas"
REPO = f"{REPO_OWNER}/{REPO_NAME}"
REF = "2cc0b9b10b48bc7937cf86845c83504e40b9458f"

CACHE_DIR = Path(".cache")
REPO_DIR = CACHE_DIR / "repo"
ARCHIVE_PREFIX = f"{REPO_NAME}-{REF}"
READY_MARKER = ".ready"
TIMEOUT = 60

HEADERS = {
    "User-Agent": "bedrock-component-types",
}


def archive_url(repo=REPO, ref=REF):
    return f"https://codeload.github.com/{repo}/tar.gz/{ref}"


def extract_archive(archive, repo_dir, prefix=ARCHIVE_PREFIX):
    """Extract the entries under `prefix/` into `repo_dir`, returning the number of files written."""
    root = Path(repo_dir).resolve()
    count = 0

    with tarfile.open(fileobj=archive, mode="r:gz") as tar:
        for member in tar:
            if member.name != prefix and not member.name.startswith(prefix + "/"):
                continue
            relative = member.name[len(prefix):].lstrip("/")
            if not relative:
                continue

            target = (root / relative).resolve()
            if root not in target.parents:
                print(f"Skipping {member.name}: outside of {repo_dir}")
                continue

            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
            elif member.isfile():
                target.parent.mkdir(parents=True, exist_ok=True)
                source = tar.extractfile(member)
                with open(target, "wb") as f:
                    shutil.copyfileobj(source, f)
                count += 1

    return count


def ensure_repo_ready(repo_dir=REPO_DIR, repo=REPO, ref=REF):
    """Download and extract the schema archive unless a previous run already did."""
    repo_dir = Path(repo_dir)
    marker = repo_dir / READY_MARKER
    if marker.exists():
        return True

    print("Downloading Minecraft schema archive...")
    shutil.rmtree(repo_dir, ignore_errors=True)
    repo_dir.mkdir(parents=True, exist_ok=True)

    url = archive_url(repo, ref)
    try:
        response = requests.get(url, headers=HEADERS, timeout=TIMEOUT)
    except requests.RequestException as e:
        print(f"Failed to download {url} ({e})")
        return False

    if response.status_code != 200:
        print(f"Failed to download {url} (status {response.status_code})")
        return False

    prefix = f"{repo.split('/')[1]}-{ref}"
    try:
        count = extract_archive(io.BytesIO(response.content), repo_dir, prefix)
    except tarfile.TarError as e:
        print(f"Failed to extract {url} ({e})")
        return False

    marker.write_text("ready", encoding="utf-8")
    print(f"Extracted {count} files into {repo_dir}")
    return True


def main():
    if not ensure_repo_ready():
        raise SystemExit(1)


if __name__ == "__main__":
    main()
