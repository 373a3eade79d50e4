import httpx

EUTILS = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"

def ncbi_params(extra: dict, *, api_key: str = "", tool: str = "", email: str = "") -> dict:
    p = dict(extra)
    if api_key:
        p["api_key"] = api_key
    if tool:
        p["tool"] = tool
    if email:
        p["email"] = email
    return p

async def esearch_pubmed(client: httpx.AsyncClient, term: str, retmax: int = 5, **ncbi) -> list[str]:
    params = ncbi_params({
        "db": "pubmed",
        "term": term,
        "retmode": "json",
        "retmax": str(retmax),
        "sort": "relevance",
    }, **ncbi)
    r = await client.get(f"{EUTILS}/esearch.fcgi", params=params)
    r.raise_for_status()
    data = r.json()
    return data.get("esearchresult", {}).get("idlist", [])

async def esummary_pubmed(client: httpx.AsyncClient, ids: list[str], **ncbi) -> dict:
    """Returns the esummary `result` mapping keyed by PMID (empty when ids is empty)."""
    if not ids:
        return {}
    params = ncbi_params({
        "db": "pubmed",
        "id": ",".join(ids),
        "retmode": "json",
    }, **ncbi)
    r = await client.get(f"{EUTILS}/esummary.fcgi", params=params)
    r.raise_for_status()
    data = r.json()
    return data.get("result", {}) if isinstance(data, dict) else {}
