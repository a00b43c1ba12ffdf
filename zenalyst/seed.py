"""Load the JSON exports into MongoDB: ``zenalyst-seed [DATA_DIR]``."""

import argparse
import logging
from pathlib import Path

from zenalyst.config import get_settings
from zenalyst.services import data_layer

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "data_dir",
        nargs="?",
        type=Path,
        default=settings.data_dir or Path("Data Source"),
        help="directory holding the A._ to E._ JSON exports",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    client = data_layer.create_client(settings)
    try:
        counts = data_layer.load_sample_data(
            client[settings.database_name], settings, args.data_dir
        )
    finally:
        client.close()

    for collection, count in counts.items():
        logger.info("%s: %d documents", collection, count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
