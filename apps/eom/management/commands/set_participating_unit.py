from django.core.management.base import BaseCommand, CommandError

from apps.eom.models import ParticipatingUnit
from apps.org.models import WorkUnit


class Command(BaseCommand):
    help = "Mengaktifkan atau menonaktifkan unit kerja dalam Employee of the Month."

    def add_arguments(self, parser):
        parser.add_argument("unit_code")
        parser.add_argument("--inactive", action="store_true", help="Nonaktifkan unit.")

    def handle(self, *args, **options):
        unit = WorkUnit.objects.filter(code=options["unit_code"]).first()
        if not unit:
            raise CommandError("Unit kerja tidak ditemukan.")

        is_active = not options["inactive"]
        row, created = ParticipatingUnit.objects.get_or_create(work_unit=unit, defaults={"is_active": is_active})
        if not created and row.is_active == is_active:
            self.stdout.write(self.style.WARNING(f"Tidak ada perubahan: {row}"))
            return

        if not created:
            row.is_active = is_active
            row.save(update_fields=["is_active", "updated_at"])
        self.stdout.write(self.style.SUCCESS(f"Unit diperbarui: {row}"))
