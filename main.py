import logging
import os
import sys
from pathlib import Path

sys.path.append(os.path.join(os.path.dirname(__file__), 'src'))

from btcodec import BencodeError
from btcodec.torrent import Metainfo

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger("btcodec")


def main(argv):
    if len(argv) != 2:
        print(f"usage: {argv[0]} FILE.torrent", file=sys.stderr)
        return 2

    torrent_path = Path(argv[1])
    try:
        meta = Metainfo.load(torrent_path)
    except (OSError, BencodeError, ValueError) as e:
        logger.error("Could not read %s: %s", torrent_path, e)
        return 1

    print("name:", meta.info.name)
    print("announce:", meta.announce)
    print("announce_list:", meta.announce_list)
    print("info_hash:", meta.info_hash.hex())
    print("piece length:", meta.info.piece_length, "pieces:", meta.info.num_pieces)
    for path, length in meta.info.file_paths():
        print(f"  {length:>12}  {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
