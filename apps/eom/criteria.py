from dataclasses import dataclass

from apps.org.constants import ASN, NON_ASN

MIN_SCORE = 1
MAX_SCORE = 5


@dataclass(frozen=True)
class Criterion:
    id: str
    title: str
    description: str
    items: tuple

    @property
    def max_points(self) -> int:
        return len(self.items) * MAX_SCORE


KEDISIPLINAN = Criterion(
    id="kedisiplinan",
    title="Kedisiplinan",
    description="Kepatuhan terhadap jam kerja, seragam dan ID card, aturan, serta tata tertib pegawai",
    items=(
        "Mematuhi jam kerja (tidak datang terlambat dan tidak pulang cepat)",
        "Menggunakan seragam sesuai ketentuan",
        "Menggunakan ID card pegawai setiap hari",
        "Mengikuti kegiatan Apel Pagi setiap awal bulan",
        "Mengikuti kegiatan Senam Pagi setiap hari Jumat",
    ),
)

KINERJA_PRODUKTIVITAS = Criterion(
    id="kinerja_produktivitas",
    title="Kinerja & Produktivitas",
    description="Menyelesaikan tugas rutin dan tugas dari pimpinan dengan cepat, tepat, dan berkualitas",
    items=(
        "Mencapai predikat kinerja minimal Baik pada E-Kinerja",
        "Mampu menyusun prioritas kerja dengan baik",
        "Memiliki dedikasi penuh terhadap pekerjaan",
        "Tidak menunda pekerjaan dan menyelesaikan pekerjaan tepat waktu",
        "Cepat, tanggap, dan solutif dalam menyelesaikan kendala",
    ),
)

KETELADANAN = Criterion(
    id="keteladanan",
    title="Keteladanan",
    description="Menjadi contoh positif dalam sikap, perilaku, tutur kata, dan etika kerja",
    items=(
        "Selalu bersikap sopan, santun, dan peduli terhadap seluruh pegawai",
        "Tidak pernah mengeluarkan kata kasar",
        "Tidak mudah mengeluh dan selalu semangat dalam bekerja",
        "Tidak bergaya hidup berlebihan",
        "Rela mengutamakan kepentingan instansi di atas kepentingan pribadi",
    ),
)

PROFESIONALISME_KOMPETENSI = Criterion(
    id="profesionalisme_kompetensi",
    title="Profesionalisme & Kompetensi",
    description="Menjalankan tugas secara profesional dengan kompetensi yang relevan",
    items=(
        "Menjalankan semua tugas yang diberikan pimpinan dengan penuh dedikasi",
        "Jujur, konsisten, dan berperilaku sesuai kode etik",
        "Menguasai peraturan, kebijakan, dan regulasi terkait bidang kerjanya",
        "Mau terus belajar demi meningkatkan kompetensi",
        "Menyelesaikan tugas dengan penuh tanggung jawab",
    ),
)

BERAKHLAK = Criterion(
    id="berakhlak",
    title="BerAKHLAK",
    description="Berorientasi pelayanan, akuntabel, kompeten, harmonis, loyal, adaptif, dan kolaboratif",
    items=(
        "Berorientasi pelayanan",
        "Akuntabel & Kompeten",
        "Harmonis",
        "Loyal",
        "Adaptif & Kolaboratif",
    ),
)

NILAI_5S = Criterion(
    id="nilai_5s",
    title="Nilai 5S",
    description="Menerapkan budaya kerja Ringkas, Rapi, Resik, Rawat, dan Rajin",
    items=(
        "Ringkas - menyingkirkan barang yang tidak diperlukan",
        "Rapi - menata peralatan kerja pada tempatnya",
        "Resik - menjaga kebersihan area kerja",
        "Rawat - mempertahankan kondisi area kerja yang baik",
        "Rajin - membiasakan 5S dalam pekerjaan sehari-hari",
    ),
)

NILAI_PELAYANAN = Criterion(
    id="nilai_pelayanan",
    title="Nilai Pelayanan",
    description="Memberikan pelayanan yang ramah, cepat, dan tuntas kepada pegawai dan masyarakat",
    items=(
        "Ramah dan sopan dalam melayani",
        "Cepat tanggap terhadap permintaan",
        "Menyelesaikan layanan sampai tuntas",
        "Memberikan informasi yang jelas dan benar",
        "Menjaga kerahasiaan dan keamanan data",
    ),
)

CRITERIA_BY_CATEGORY = {
    ASN: (KEDISIPLINAN, KINERJA_PRODUKTIVITAS, KETELADANAN, PROFESIONALISME_KOMPETENSI, BERAKHLAK),
    NON_ASN: (KEDISIPLINAN, KINERJA_PRODUKTIVITAS, NILAI_5S, NILAI_PELAYANAN),
}


def criteria_for(category: str) -> tuple:
    return CRITERIA_BY_CATEGORY.get(category, CRITERIA_BY_CATEGORY[ASN])


def max_possible_points(criteria) -> int:
    return sum(c.max_points for c in criteria)
