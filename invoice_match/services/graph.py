import json
import httpx
from ..core.config import settings

# Post an Adaptive Card to a Teams Incoming Webhook when an invoice's job
# match needs a human decision.

ADAPTIVE_CARD_TEMPLATE = {
    "type": "message",
    "attachments": [{
        "contentType": "application/vnd.microsoft.card.adaptive",
        "content": {
            "$schema": "http://adaptivecards.io/schemas/adaptive-card.json",
            "type": "AdaptiveCard",
            "version": "1.4",
            "body": [
                {"type": "TextBlock", "weight": "Bolder", "size": "Medium", "text": "Invoice Match Review"},
                {"type": "FactSet", "facts": []}
            ],
            "actions": []
        }
    }]
}

REVIEW_FACTS = [
    "vendor_name", "invoice_number", "invoice_date", "ship_to_name",
    "ship_to_address", "total_amount", "matched_job_id", "match_confidence",
]


async def post_review_card(invoice: dict, invoice_id: str) -> dict:
    if not settings.teams_webhook_url:
        return {"status": "skipped", "reason": "TEAMS_WEBHOOK_URL not set"}

    base_url = settings.api_base_url

    card = json.loads(json.dumps(ADAPTIVE_CARD_TEMPLATE))
    facts = card["attachments"][0]["content"]["body"][1]["facts"]
    for k in REVIEW_FACTS:
        if k in invoice and invoice[k] is not None:
            facts.append({"title": k, "value": str(invoice[k])})

    card["attachments"][0]["content"]["actions"] = [
        {
            "type": "Action.OpenUrl",
            "title": "Open invoice",
            "url": f"{base_url}/invoices/{invoice_id}"
        }
    ]

    async with httpx.AsyncClient(timeout=10) as client:
        r = await client.post(settings.teams_webhook_url, json=card)
        return {"status": "sent", "http_status": r.status_code}
