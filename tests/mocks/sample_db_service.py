"""
Example storage module in the data team's naming convention.

Loaded by dotted path through ModuleStorageAdapter.from_module_path; mixes
sync and async functions the way real teammate modules do.
"""

CANDIDATES = {}
CAREERS = [
    {"title": "Engineer", "sector": "tech"},
    {"title": "Nurse", "sector": "healthcare"},
]


def reset():
    CANDIDATES.clear()


def getDropdowns():
    return {"sectors": sorted({career["sector"] for career in CAREERS})}


async def saveCandidate(candidate):
    candidate_id = f"c{len(CANDIDATES) + 1}"
    CANDIDATES[candidate_id] = dict(candidate)
    return candidate_id


def fetchCareers(criteria):
    return [career for career in CAREERS if career["sector"] == criteria.get("sector")]


async def updateCandidateRecommendations(candidate_id, recommendations):
    CANDIDATES[candidate_id]["recommendations"] = recommendations
