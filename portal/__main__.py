import asyncio

from loguru import logger

from portal.api.client import PortalAPIClient
from portal.api.utils import to_date
from portal.settings import settings
from portal.settings.logging import setup_logging
from portal.stores import AuthStore, DoctorStore


async def run() -> int:
    """Log in, load the dashboard and log a summary."""
    if not settings.PORTAL_EMAIL or not settings.PORTAL_PASSWORD:
        logger.error("PORTAL_EMAIL and PORTAL_PASSWORD must be set")
        return 1

    async with PortalAPIClient() as client:
        auth = AuthStore(client)
        result = await auth.login(settings.PORTAL_EMAIL, settings.PORTAL_PASSWORD)
        if not result.success:
            logger.error(f"Login failed: {result.error}")
            return 1

        doctor = DoctorStore(client, auth_store=auth)
        await doctor.fetch_dashboard_stats()
        if doctor.error:
            logger.error(f"Dashboard unavailable: {doctor.error}")
            return 1

        stats = doctor.dashboard_stats
        logger.info(
            f"Patients: {stats.total_patients}, "
            f"appointments: {stats.total_appointments} "
            f"({stats.today_appointments} today, "
            f"{stats.upcoming_appointments} upcoming)",
        )
        for appointment in stats.recent_appointments:
            day = to_date(appointment.appointment_date)
            logger.info(
                f"{appointment.appointment_id or appointment.id} {day or '-'} "
                f"{appointment.start_time}-{appointment.end_time} "
                f"[{appointment.status}]",
            )

        await auth.logout()
    return 0


def main() -> None:
    """Main function."""
    setup_logging()
    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
