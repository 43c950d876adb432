"""Create the archive registry schema and the blob directory."""

from tempdrop.config import load_config


def main() -> None:
    config = load_config()
    config.engine.dispose()
    print(f"Registry ready at {config.database_url}")
    print(f"Blob directory ready at {config.storage_root.resolve()}")


if __name__ == "__main__":
    main()
