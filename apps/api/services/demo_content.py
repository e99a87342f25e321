"""Sample dashboard content, served only when DEMO_MODE is on."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

# Negative ids never collide with downloads.id.
_SAMPLES: List[Dict[str, Any]] = [
    {
        "id": -101,
        "title": "The Future of Quantum Computing in Business Applications",
        "searchTerm": "quantum computing business applications",
        "age_minutes": 0,
        "images": [
            "https://images.unsplash.com/photo-1620712943543-bcc4688e7485?q=80&w=2000&auto=format&fit=crop",
            "https://images.unsplash.com/photo-1635070041078-e363dbe005cb?q=80&w=2000&auto=format&fit=crop",
            "https://images.unsplash.com/photo-1580894732444-8ecded7900cd?q=80&w=2000&auto=format&fit=crop",
        ],
    },
    {
        "id": -102,
        "title": "Sustainable Urban Farming: Vertical Agriculture Solutions",
        "searchTerm": "vertical farming urban agriculture",
        "age_minutes": 60,
        "images": [
            "https://images.unsplash.com/photo-1585168758008-8055c959783d?q=80&w=2000&auto=format&fit=crop",
            "https://images.unsplash.com/photo-1563089145-599997674d42?q=80&w=2000&auto=format&fit=crop",
            "https://images.unsplash.com/photo-1492496913980-501348b61469?q=80&w=2000&auto=format&fit=crop",
        ],
    },
    {
        "id": -103,
        "title": "Exploring California's Cutting-Edge House Design Trends",
        "searchTerm": "california house design trends",
        "age_minutes": 120,
        "images": [
            "https://images.unsplash.com/photo-1600585154340-be6161a56a0c?q=80&w=1000&auto=format&fit=crop",
            "https://images.unsplash.com/photo-1600210492493-0946911123ea?q=80&w=1000&auto=format&fit=crop",
            "https://images.unsplash.com/photo-1600607687644-c7171b47e9cf?q=80&w=1000&auto=format&fit=crop",
        ],
    },
]


def _sample(content_id: int) -> Optional[Dict[str, Any]]:
    for sample in _SAMPLES:
        if sample["id"] == content_id:
            return sample
    return None


def demo_user_contents() -> List[Dict[str, Any]]:
    now = datetime.now(timezone.utc)
    return [
        {
            "id": sample["id"],
            "contentType": "demo",
            "title": sample["title"],
            "searchTerm": sample["searchTerm"],
            "createdAt": (now - timedelta(minutes=sample["age_minutes"])).isoformat(),
            "downloadUrl": f"/api/user/content/{sample['id']}/download",
            "previewUrl": f"/api/user/content/{sample['id']}/preview",
            "thumbnailUrl": sample["images"][0],
            "imageCount": len(sample["images"]),
            "downloaded": False,
        }
        for sample in _SAMPLES
    ]


def demo_images(content_id: int) -> Optional[List[str]]:
    sample = _sample(content_id)
    return list(sample["images"]) if sample else None


def demo_preview(content_id: int) -> Optional[Dict[str, Any]]:
    sample = _sample(content_id)
    if sample is None:
        return None
    return {
        "title": sample["title"],
        "content": (
            f"<h1>{sample['title']}</h1>"
            f"<p>Sample article generated for \"{sample['searchTerm']}\".</p>"
        ),
        "featureImage": sample["images"][0],
        "footnotes": [],
    }
