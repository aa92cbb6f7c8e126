import csv
import logging
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.core.permissions import ROLES, USER_UNIT
from apps.org.models import CATEGORIES, Profile, WorkUnit

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"nip", "name", "work_unit_code"}


@dataclass
class RowResult:
    action: str  # "create" | "update" | "skip" | "error"
    nip: str
    message: str = ""


class Command(BaseCommand):
    help = "Impor pegawai dari CSV (upsert berdasarkan NIP). DRY-RUN secara default; gunakan --apply untuk menulis."

    def add_arguments(self, parser):
        parser.add_argument("csv_path", type=str, help="Path ke CSV (UTF-8, delimiter ';').")
        parser.add_argument("--apply", action="store_true", help="Tulis perubahan ke database.")
        parser.add_argument("--delimiter", type=str, default=";", help="Delimiter CSV. Default ';'.")
        parser.add_argument("--encoding", type=str, default="utf-8-sig", help="Encoding. Default utf-8-sig.")
        parser.add_argument("--strict", action="store_true", help="Batalkan semua jika ada baris error.")

    def handle(self, *args, **options):
        csv_path = Path(options["csv_path"])
        if not csv_path.exists():
            raise CommandError(f"File tidak ditemukan: {csv_path}")

        apply_changes = bool(options["apply"])
        strict = bool(options["strict"])

        self.stdout.write(
            self.style.MIGRATE_HEADING(f"Import pegawai | file={csv_path} | apply={apply_changes}")
        )

        counts = {"create": 0, "update": 0, "skip": 0, "error": 0}
        errors: list[RowResult] = []
        units = {u.code: u for u in WorkUnit.objects.all()}

        with csv_path.open("r", encoding=options["encoding"], newline="") as f:
            reader = csv.DictReader(f, delimiter=options["delimiter"])

            if not reader.fieldnames:
                raise CommandError("CSV tanpa header.")

            missing = REQUIRED_COLUMNS - {h.strip() for h in reader.fieldnames}
            if missing:
                raise CommandError(f"Kolom wajib tidak ada: {sorted(missing)}")

            with transaction.atomic() if apply_changes else nullcontext():
                for line_no, row in enumerate(reader, start=2):
                    result = self._process_row(row, units, apply_changes)
                    counts[result.action] += 1
                    if result.action == "error":
                        result.message = f"Baris {line_no}: {result.message}"
                        errors.append(result)
                        if strict:
                            raise CommandError(result.message)

        logger.info("Employee import finished: %s (apply=%s)", counts, apply_changes)

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS("RINGKASAN"))
        for action in ("create", "update", "skip", "error"):
            self.stdout.write(f"  {action}: {counts[action]}")

        if errors:
            self.stdout.write("")
            self.stdout.write(self.style.WARNING("ERROR (20 pertama):"))
            for r in errors[:20]:
                self.stdout.write(f"  - {r.message}")

        if not apply_changes:
            self.stdout.write("")
            self.stdout.write(self.style.NOTICE("DRY-RUN: tidak ada yang ditulis. Gunakan --apply."))

    def _process_row(self, row: dict, units: dict, apply_changes: bool) -> RowResult:
        nip = (row.get("nip") or "").strip()
        name = (row.get("name") or "").strip()
        unit_code = (row.get("work_unit_code") or "").strip()
        role = (row.get("role") or "").strip() or USER_UNIT
        kriteria = (row.get("kriteria_asn") or "").strip() or None
        jabatan = (row.get("jabatan") or "").strip()

        if not nip:
            return RowResult(action="error", nip="", message="NIP kosong")
        if not name:
            return RowResult(action="error", nip=nip, message="name kosong")
        if role not in ROLES:
            return RowResult(action="error", nip=nip, message=f"role tidak dikenal: {role!r}")
        if kriteria is not None and kriteria not in CATEGORIES:
            return RowResult(action="error", nip=nip, message=f"kriteria_asn tidak dikenal: {kriteria!r}")

        unit = units.get(unit_code)
        if unit is None:
            return RowResult(action="error", nip=nip, message=f"WorkUnit tidak ada untuk code={unit_code!r}")

        values = {
            "name": name,
            "role": role,
            "work_unit_id": unit.id,
            "kriteria_asn": kriteria,
            "jabatan": jabatan,
        }

        profile = Profile.objects.filter(nip=nip).first()
        if profile is None:
            if apply_changes:
                Profile.objects.create(nip=nip, **values)
            return RowResult(action="create", nip=nip)

        changed = [field for field, value in values.items() if getattr(profile, field) != value]
        if not changed:
            return RowResult(action="skip", nip=nip, message="tidak ada perubahan")

        if apply_changes:
            for field in changed:
                setattr(profile, field, values[field])
            profile.save(update_fields=changed + ["updated_at"])
        return RowResult(action="update", nip=nip, message=", ".join(changed))
