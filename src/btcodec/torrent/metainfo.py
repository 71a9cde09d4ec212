"""
Metainfo (.torrent) files as bencode records.

Nothing here is special-cased in the codec: the records rely on field tags
alone. The info-hash is taken over the exact bytes of the "info" dictionary as
they appear in the file, captured with RawValue, so it matches what trackers
and peers compute.
"""
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from ..decoder import unmarshal
from ..encoder import marshal
from ..structure import RawValue
from ..tags import bfield

logger = logging.getLogger(__name__)

PIECE_HASH_LEN = 20


@dataclass
class File:
    # The length of the file, in bytes.
    length: int = bfield("length", default=0)
    md5sum: bytes = bfield("md5sum,omitempty", default=b"")
    # subdirectory names, the last of which is the actual file name
    path: List[str] = bfield("path", default_factory=list)


@dataclass
class Info:
    """
    There is a key length or a key files, but not both or neither. With
    files, the download is a directory and the files are concatenated in
    list order for the purposes of piece hashing.
    """
    files: List[File] = bfield("files,omitempty", default_factory=list)
    length: int = bfield("length,omitempty", default=0)
    md5sum: bytes = bfield("md5sum,omitempty", default=b"")
    name: str = bfield("name", default="")
    piece_length: int = bfield("piece length", default=0)
    # concatenated 20-byte SHA1 hashes, one per piece
    pieces: bytes = bfield("pieces", default=b"")
    private: bool = bfield("private,omitempty", default=False)

    @property
    def is_multi_file(self) -> bool:
        return bool(self.files)

    @property
    def piece_hashes(self) -> List[bytes]:
        if len(self.pieces) % PIECE_HASH_LEN:
            raise ValueError(f"'pieces' length {len(self.pieces)} is not a multiple of {PIECE_HASH_LEN}")
        return [self.pieces[i:i+PIECE_HASH_LEN] for i in range(0, len(self.pieces), PIECE_HASH_LEN)]

    @property
    def num_pieces(self) -> int:
        return len(self.pieces) // PIECE_HASH_LEN

    @property
    def total_length(self) -> int:
        if self.is_multi_file:
            return sum(f.length for f in self.files)
        return self.length

    @property
    def last_piece_length(self) -> int:
        if not self.piece_length:
            return 0
        return (self.total_length % self.piece_length) or self.piece_length

    def file_paths(self) -> List[Tuple[str, int]]:
        """(relative path, length) of every file, rooted at the torrent name."""
        if not self.is_multi_file:
            return [(self.name, self.length)]
        return [("/".join([self.name, *f.path]), f.length) for f in self.files]


@dataclass
class Metainfo:
    # The URL of the tracker.
    announce: str = bfield("announce", default="")
    info: Info = bfield("info", default_factory=Info)
    # BEP-12 tiers of tracker URLs
    announce_list: List[List[str]] = bfield("announce-list,omitempty", default_factory=list)
    # seconds since the UNIX epoch
    creation_date: int = bfield("creation date,omitempty", default=0)
    comment: str = bfield("comment,omitempty", default="")
    created_by: str = bfield("created by,omitempty", default="")
    encoding: str = bfield("encoding,omitempty", default="")
    raw_info: bytes = bfield("-", default=b"", repr=False, compare=False)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Metainfo":
        meta = unmarshal(data, cls)
        raw = unmarshal(data, _InfoSlice).info
        if not raw.data:
            raise ValueError("Torrent missing 'info' dictionary")
        meta.raw_info = raw.data
        return meta

    @classmethod
    def load(cls, path) -> "Metainfo":
        path = Path(path)
        meta = cls.from_bytes(path.read_bytes())
        logger.info("Loaded %s: name=%r pieces=%d info_hash=%s",
                    path, meta.info.name, meta.info.num_pieces, meta.info_hash.hex())
        return meta

    def to_bytes(self) -> bytes:
        return marshal(self)

    @property
    def info_hash(self) -> bytes:
        """
        SHA1 of the info dictionary, as read when available.

        raw_info is not updated when info is modified after loading; set
        raw_info to b"" to hash the re-encoded info instead.
        """
        info_bytes = self.raw_info or marshal(self.info)
        return hashlib.sha1(info_bytes).digest()

    @property
    def announce_urls(self) -> List[str]:
        """Every tracker URL, announce first, tiers in order, without duplicates."""
        urls = []
        for url in [self.announce, *(u for tier in self.announce_list for u in tier)]:
            if url and url not in urls:
                urls.append(url)
        return urls


@dataclass
class _InfoSlice:
    info: RawValue = bfield("info", default_factory=RawValue)
