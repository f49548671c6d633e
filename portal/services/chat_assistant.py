# portal/services/chat_assistant.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from portal.models import to_number

_FALLBACKS = [
    (
        ("price", "cost", "value"),
        "Dubai property prices vary significantly by area and property type. Prime locations like Downtown "
        "Dubai and Dubai Marina typically command higher prices, while emerging areas offer better value. For "
        "current market prices, I recommend checking with local real estate agents or recent sales data. Would "
        "you like information about a specific area or property type?",
    ),
    (
        ("visa", "residency", "golden visa"),
        "Dubai offers several visa options through property investment, including the Golden Visa for "
        "investments over AED 2 million. Property investments can also qualify for renewable residence visas. "
        "The specific requirements depend on the investment amount and property type. Would you like more "
        "details about investor visa requirements?",
    ),
    (
        ("area", "location", "neighborhood"),
        "Popular investment areas in Dubai include Downtown Dubai, Dubai Marina, Jumeirah Lake Towers (JLT), "
        "Business Bay, Dubai Hills Estate, and emerging areas like Dubai South and Mohammed Bin Rashid City "
        "(MBR City). Each offers different advantages for investors in terms of rental yields, capital "
        "appreciation, and lifestyle amenities.",
    ),
    (
        ("rental", "yield", "roi"),
        "Rental yields in Dubai typically range from 4-8% annually, depending on location and property type. "
        "Areas like Dubai South and International City often offer higher yields, while prime areas like "
        "Downtown offer lower yields but better capital appreciation potential. Your current portfolio shows "
        "properties that can help track actual performance.",
    ),
    (
        ("investment", "portfolio", "diversif"),
        "Investment diversification is crucial for managing risk. While Dubai real estate can be a strong "
        "component of your portfolio, consider spreading investments across different asset classes, "
        "geographic locations, and property types. Your current Dubai properties are a good foundation - have "
        "you considered other markets or investment vehicles?",
    ),
    (
        ("tax", "finance"),
        "Tax implications vary greatly depending on your residency and citizenship. Dubai has no personal "
        "income tax, but your home country may have tax obligations on foreign property income and capital "
        "gains. I recommend consulting with a tax professional familiar with international property "
        "investments for personalized advice.",
    ),
]

_GENERIC = (
    "I'm currently experiencing technical difficulties, but I'm here to help with both Dubai real estate "
    "questions and general investment advice. Some popular topics I can assist with include:\n\n"
    "• Dubai property market analysis and trends\n"
    "• Investment strategies and portfolio management\n"
    "• Visa and residency options through property investment\n"
    "• Financial planning for real estate investors\n"
    "• General business and economic questions\n\n"
    "What specific area would you like to discuss?"
)


def fallback_reply(message: str) -> str:
    lowered = (message or "").lower()
    for keywords, answer in _FALLBACKS:
        if any(k in lowered for k in keywords):
            return answer
    return _GENERIC


def suggestions(units: List[Dict[str, Any]]) -> List[str]:
    out = []
    if not units:
        out.append("Ask about: 'What areas in Dubai are best for first-time investors?'")
    if any(u.get("occupancyStatus") == "Vacant" for u in units):
        out.append("Ask about: 'How can I improve occupancy rates for my Dubai properties?'")
    if units and sum(to_number(u.get("currentValue")) for u in units) > 500000:
        out.append("Ask about: 'Dubai Golden Visa requirements for property investors'")
    return out


def portfolio_context(investor: Optional[Dict[str, Any]], units: List[Dict[str, Any]]) -> Optional[str]:
    if not investor:
        return None
    total = sum(to_number(u.get("currentValue")) for u in units)
    names = ", ".join(u.get("name") or "" for u in units[:5])
    return f"{investor.get('name')} holds {len(units)} unit(s) worth {total:,.0f} in total ({names})."
