"""Static label dictionary and synonym clusters shared by matching and filling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

SynonymCluster = Tuple[str, ...]


@dataclass(frozen=True)
class Category:
    key: str
    synonyms: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        """True when ``text`` is the key itself or contains any synonym."""
        return text == self.key or any(token in text for token in self.synonyms)


# Order matters: the first category a label falls into wins.
CATEGORIES: Tuple[Category, ...] = (
    Category("nama", ("nama", "lengkap", "peserta", "name", "identitas", "panggilan", "customer", "pelanggan")),
    Category(
        "telepon",
        ("telepon", "phone", "wa", "whatsapp", "kontak", "hp", "telp", "aktif", "emergency", "darurat", "no aktif"),
    ),
    Category("alamat", ("alamat", "address", "domisili", "ktp", "tinggal", "rumah", "lokasi", "location")),
    Category(
        "nik",
        (
            "nik",
            "nomer induk keluarga",
            "nomer induk kependudukan",
            "nomor induk keluarga",
            "nomor induk kependudukan",
            "id card",
            "identitas diri",
            "nomor induk",
            "identity",
        ),
    ),
    Category("kk", ("kk", "kartu keluarga", "no kk", "nomor kartu keluarga", "nomer kartu keluarga")),
    Category("email", ("email", "surel", "pos-el", "mail")),
    Category("tgl", ("tanggal", "lahir", "date", "birth")),
    Category("kelamin", ("jenis kelamin", "gender", "sex", "pria", "wanita", "laki-laki", "perempuan", "lk", "pr")),
    Category("agama", ("agama", "religion", "faith")),
    Category("status", ("kondisi", "keadaan", "status", "keterangan", "bocor", "fungsi", "normal", "good")),
)

OPTION_CLUSTERS: Tuple[SynonymCluster, ...] = (
    ("pria", "laki-laki", "laki laki", "lk", "male"),
    ("wanita", "perempuan", "pr", "female"),
)

DAY_HINTS = ("day", "hari", "tanggal")
MONTH_HINTS = ("month", "bulan")
YEAR_HINTS = ("year", "tahun")


def find_category(text: str) -> Optional[Category]:
    for category in CATEGORIES:
        if category.matches(text):
            return category
    return None


def cluster_for(token: str) -> Optional[SynonymCluster]:
    for cluster in OPTION_CLUSTERS:
        if token in cluster:
            return cluster
    return None


def share_cluster(left: str, right: str) -> bool:
    cluster = cluster_for(left)
    return cluster is not None and right in cluster
