"""
Hospital dashboard and blood-type statistics.
"""
from typing import Optional

from models import RequestStatus, UserRole
from services.donor_search import contains


async def hospital_dashboard(db, hospital: dict) -> dict:
    own = {"requested_by": hospital["id"]}
    city = (hospital.get("location") or {}).get("city")
    local_donors = {"role": UserRole.DONOR.value, "location.city": city, "is_active": True}

    requests = {"total": await db.blood_requests.count_documents(own)}
    for status in (RequestStatus.ACTIVE, RequestStatus.FULFILLED, RequestStatus.CANCELLED):
        requests[status.value] = await db.blood_requests.count_documents({**own, "status": status.value})

    donors = {
        "total": await db.users.count_documents(local_donors),
        "available": await db.users.count_documents({**local_donors, "available": True}),
    }

    pipeline = [
        {"$match": {**local_donors, "available": True}},
        {"$group": {"_id": "$blood_type", "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ]
    distribution = await db.users.aggregate(pipeline).to_list(20)

    return {
        "requests": requests,
        "donors": donors,
        "blood_type_distribution": {item["_id"]: item["count"] for item in distribution if item["_id"]},
    }


async def blood_type_stats(db, city: Optional[str]) -> dict:
    """Per blood type donor supply and active request demand for a city."""
    donor_match = {"role": UserRole.DONOR.value, "is_active": True}
    request_match = {"status": RequestStatus.ACTIVE.value}
    if city:
        donor_match["location.city"] = contains(city)
        request_match["location.city"] = contains(city)

    donor_pipeline = [
        {"$match": donor_match},
        {"$group": {
            "_id": "$blood_type",
            "total": {"$sum": 1},
            "available": {"$sum": {"$cond": ["$available", 1, 0]}},
        }},
        {"$sort": {"_id": 1}},
    ]
    request_pipeline = [
        {"$match": request_match},
        {"$group": {
            "_id": "$blood_type",
            "total_requests": {"$sum": 1},
            "total_units_needed": {"$sum": "$units_needed"},
        }},
        {"$sort": {"_id": 1}},
    ]

    donor_stats = await db.users.aggregate(donor_pipeline).to_list(20)
    request_stats = await db.blood_requests.aggregate(request_pipeline).to_list(20)

    return {
        "city": city,
        "donor_stats": [
            {"blood_type": item["_id"], "total": item["total"], "available": item["available"]}
            for item in donor_stats
        ],
        "request_stats": [
            {
                "blood_type": item["_id"],
                "total_requests": item["total_requests"],
                "total_units_needed": item["total_units_needed"],
            }
            for item in request_stats
        ],
    }
