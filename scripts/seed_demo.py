import asyncio
from datetime import datetime, timedelta, timezone

from careflow.db import get_client, providers_col, requests_col
from careflow.repos.mongo import MongoProviderStore, MongoRequestStore
from careflow.schemas import LatLng, PatientRequest, ProviderIn

PROVIDERS = [
    ("inova-fairfax", ProviderIn(name="Inova Fairfax Hospital", type="hospital",
                                 location=LatLng(lat=38.8576, lng=-77.2275),
                                 services=["urgent_care", "maternal_care", "diagnostic", "specialty"],
                                 current_wait_time=55, accepts_walk_ins=True, rating=4.1)),
    ("patient-first-fairfax", ProviderIn(name="Patient First Fairfax", type="urgent_care",
                                         location=LatLng(lat=38.8629, lng=-77.3010),
                                         services=["urgent_care", "general"],
                                         current_wait_time=15, accepts_walk_ins=True, rating=4.4)),
    ("nova-dental", ProviderIn(name="NoVA Community Dental", type="clinic",
                               location=LatLng(lat=38.8816, lng=-77.1710),
                               services=["dental"], languages_spoken=["English", "Spanish"])),
    ("health-van", ProviderIn(name="Mobile Health Van", type="mobile",
                              location=LatLng(lat=38.8300, lng=-77.3100),
                              services=["general", "vaccination", "pediatric"], current_wait_time=30)),
    ("telecare", ProviderIn(name="TeleCare Virtual Clinic", type="telehealth",
                            services=["general", "mental_health"], telehealth_available=True)),
]

REQUESTS = [
    ("demo-r1", LatLng(lat=38.85, lng=-77.27), "urgent_care", 1),
    ("demo-r2", LatLng(lat=38.84, lng=-77.30), "vaccination", 4),
    ("demo-r3", LatLng(lat=38.88, lng=-77.18), "dental", 3),
    ("demo-r4", LatLng(lat=38.90, lng=-77.25), "mental_health", 2),
]

async def main():
    # wipe demo rows if they exist
    await providers_col().delete_many({"_id": {"$in": [pid for pid, _ in PROVIDERS]}})
    await requests_col().delete_many({"_id": {"$in": [rid for rid, *_ in REQUESTS]}})

    providers = MongoProviderStore(providers_col())
    requests = MongoRequestStore(requests_col())

    for pid, data in PROVIDERS:
        await providers.insert(data, provider_id=pid)

    now = datetime.now(timezone.utc)
    for i, (rid, loc, service, urgency) in enumerate(REQUESTS):
        await requests.insert(PatientRequest(
            id=rid, location=loc, requested_service=service, urgency_level=urgency,
            created_at=now - timedelta(minutes=10 * (len(REQUESTS) - i)),
        ))

    print(f"Seeded: {len(PROVIDERS)} providers, {len(REQUESTS)} requests")
    get_client().close()

if __name__ == "__main__":
    asyncio.run(main())
