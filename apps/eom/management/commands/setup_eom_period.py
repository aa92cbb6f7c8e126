from django.core.management.base import BaseCommand, CommandError

from apps.eom.forms import EomSettingsForm
from apps.eom.models import EomSettings


class Command(BaseCommand):
    help = (
        "Crea o memperbarui jadwal periode Employee of the Month. "
        "Tanggal evaluasi dan verifikasi default ke tanggal akhir penilaian."
    )

    def add_arguments(self, parser):
        parser.add_argument("period", help="Periode YYYY-MM")
        parser.add_argument("--rating-start", required=True, help="YYYY-MM-DD")
        parser.add_argument("--rating-end", required=True, help="YYYY-MM-DD")
        parser.add_argument("--evaluation-start")
        parser.add_argument("--evaluation-end")
        parser.add_argument("--verification-start")
        parser.add_argument("--verification-end")
        parser.add_argument("--update", action="store_true", help="Perbarui periode yang sudah ada.")

    def handle(self, *args, **options):
        period = options["period"]
        rating_end = options["rating_end"]
        data = {
            "period": period,
            "rating_start_date": options["rating_start"],
            "rating_end_date": rating_end,
            "evaluation_start_date": options["evaluation_start"] or rating_end,
            "evaluation_end_date": options["evaluation_end"] or rating_end,
            "verification_start_date": options["verification_start"] or rating_end,
            "verification_end_date": options["verification_end"] or rating_end,
        }

        existing = EomSettings.objects.filter(period=period).first()
        if existing and not options["update"]:
            raise CommandError(f"Periode {period} sudah ada. Gunakan --update untuk memperbarui.")

        form = EomSettingsForm(data, instance=existing)
        if not form.is_valid():
            errors = [msg for msgs in form.errors.values() for msg in msgs]
            raise CommandError("Data periode tidak valid: " + " ".join(errors))

        settings = form.save()
        verb = "diperbarui" if existing else "dibuat"
        self.stdout.write(
            self.style.SUCCESS(
                f"Periode {verb}: {settings.period} "
                f"(penilaian {settings.rating_start_date} s/d {settings.rating_end_date})"
            )
        )
