import csv

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from apps.eom.selectors import EomDataSource, unit_names
from apps.eom.services import ranking
from apps.eom.services.periods import format_period, validate_period
from apps.org.constants import CATEGORIES


class Command(BaseCommand):
    help = "Laporan peringkat dan partisipasi untuk satu periode Employee of the Month."

    def add_arguments(self, parser):
        parser.add_argument("period", help="Periode YYYY-MM")
        parser.add_argument("--limit", type=int, default=10, help="Jumlah baris per kategori.")
        parser.add_argument("--csv", action="store_true", help="Keluaran CSV.")

    def handle(self, *args, **options):
        try:
            period = validate_period(options["period"])
        except ValidationError as exc:
            raise CommandError(" ".join(exc.messages))

        source = EomDataSource()
        rows = source.aggregated_rows(period=period)
        partitions = ranking.partition_by_category(rows)

        if options["csv"]:
            writer = csv.writer(self.stdout)
            writer.writerow(["category", "rank", "nip", "name", "unit", "rating_count", "total_points", "score"])
            nips = {e.id: e.nip for e in source.fetch_employees()}
            for category in CATEGORIES:
                for r in ranking.rank_within_scope(partitions[category]):
                    writer.writerow([
                        category,
                        r.rank,
                        nips.get(r.row.employee_id, ""),
                        r.row.employee_name,
                        r.row.employee_work_unit or "",
                        r.row.rating_count,
                        r.row.total_points,
                        r.score,
                    ])
            return

        self.stdout.write(f"LAPORAN EMPLOYEE OF THE MONTH {format_period(period).upper()}")
        self.stdout.write(f"- Pegawai dinilai: {len(rows)}")

        stats = ranking.participation_stats(
            source.fetch_ratings(period=period),
            source.fetch_employees(),
            period,
            source.fetch_participating_unit_ids(),
            unit_names(),
        )
        summary = ranking.participation_summary(stats)
        self.stdout.write(
            f'- Partisipasi: {summary["total_rated"]}/{summary["total_employees"]} '
            f'({summary["overall_percentage"]:.1f}%)\n'
        )

        for category in CATEGORIES:
            ranked = ranking.rank_within_scope(partitions[category])
            self.stdout.write(f"KATEGORI {category.upper()}")
            if not ranked:
                self.stdout.write("- (belum ada penilaian)")
            for r in ranked[: options["limit"]]:
                self.stdout.write(
                    f"{r.rank:>3}. {r.row.employee_name} [{r.row.employee_work_unit or '-'}] "
                    f"{r.score} poin ({r.row.rating_count} penilaian)"
                )
            self.stdout.write("")

        self.stdout.write("PARTISIPASI PER UNIT")
        for u in stats:
            self.stdout.write(
                f"- {u.unit_name}: {u.employees_rated}/{u.total_employees} ({u.rated_percentage:.1f}%)"
            )
