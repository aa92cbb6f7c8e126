from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.core.permissions import ROLES
from apps.org.models import Profile


class Command(BaseCommand):
    help = "Hubungkan akun login dengan profil pegawai (berdasarkan NIP) dan tetapkan perannya."

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("nip")
        parser.add_argument("role", choices=ROLES)

    def handle(self, *args, **options):
        user = get_user_model().objects.filter(username=options["username"]).first()
        if not user:
            raise CommandError("Akun tidak ditemukan.")

        profile = Profile.objects.filter(nip=options["nip"]).first()
        if not profile:
            raise CommandError("Profil dengan NIP tersebut tidak ditemukan.")

        if profile.user_id not in (None, user.id):
            raise CommandError("Profil sudah terhubung dengan akun lain.")
        if Profile.objects.filter(user=user).exclude(pk=profile.pk).exists():
            raise CommandError("Akun sudah terhubung dengan profil lain.")

        if profile.user_id == user.id and profile.role == options["role"]:
            self.stdout.write(self.style.WARNING("Peran sudah sesuai."))
            return

        profile.user = user
        profile.role = options["role"]
        profile.save(update_fields=["user", "role", "updated_at"])
        self.stdout.write(self.style.SUCCESS(f"{user.username} -> {profile.name} [{profile.role}]"))
