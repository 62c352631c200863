"""
Prompts for expense extraction from text/audio transcriptions.
Uses LangChain prompt templates; the model must answer with one JSON object.
"""

from langchain_core.prompts import ChatPromptTemplate

from voiceexpense.schemas.extraction import Category

CATEGORY_LIST = ", ".join(category.value for category in Category)

# System prompt for expense extraction.
# Literal JSON braces are doubled because this is a template.
EXPENSE_EXTRACTION_SYSTEM = """You are an expense parsing assistant. Extract structured expense data from voice transcriptions and typed notes.

**Rules**:
- Extract ALL expenses mentioned in the text
- Return a JSON object with an "expenses" array
- Each expense must have: amount (number), category, date (ISO-8601), merchant (optional), notes (optional)
- Valid categories: {categories}
- Be lenient with category matching (e.g., "coffee" -> "Food & Drink", "uber" -> "Transport")
- If no category fits, use "Other"
- If the date is not mentioned, use today's date: {today}
- Amount must be a positive number without currency symbols
- If you are unsure about any critical field (amount or category), set "needsClarification" to true and provide a short "clarificationQuestion" for the user
- Set "confidence" to "high", "medium" or "low"
- Respond with JSON only, no prose and no markdown

**Response format**:
{{
  "expenses": [
    {{
      "amount": 45.50,
      "category": "Food & Drink",
      "date": "2026-01-09T12:00:00Z",
      "merchant": "Starbucks",
      "notes": "Coffee with team"
    }}
  ],
  "confidence": "high",
  "needsClarification": false,
  "clarificationQuestion": null
}}"""

EXPENSE_EXTRACTION_USER = """{text}"""

# Complete prompt template (categories bound up front, today per call)
EXPENSE_EXTRACTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", EXPENSE_EXTRACTION_SYSTEM),
        ("user", EXPENSE_EXTRACTION_USER),
    ]
).partial(categories=CATEGORY_LIST)


# Free-text labels the model (or a user) commonly produces, mapped onto the
# closed category set. Keys are lowercase.
CATEGORY_ALIASES: dict[str, Category] = {
    # Food & Drink
    "food": Category.FOOD_AND_DRINK,
    "food & dining": Category.FOOD_AND_DRINK,
    "food and drink": Category.FOOD_AND_DRINK,
    "dining": Category.FOOD_AND_DRINK,
    "restaurant": Category.FOOD_AND_DRINK,
    "restaurants": Category.FOOD_AND_DRINK,
    "coffee": Category.FOOD_AND_DRINK,
    "cafe": Category.FOOD_AND_DRINK,
    "coffee shops": Category.FOOD_AND_DRINK,
    "fast food": Category.FOOD_AND_DRINK,
    "lunch": Category.FOOD_AND_DRINK,
    "dinner": Category.FOOD_AND_DRINK,
    "breakfast": Category.FOOD_AND_DRINK,
    "drinks": Category.FOOD_AND_DRINK,
    "bar": Category.FOOD_AND_DRINK,
    "food delivery": Category.FOOD_AND_DRINK,
    # Groceries
    "grocery": Category.GROCERIES,
    "supermarket": Category.GROCERIES,
    "market": Category.GROCERIES,
    # Transport
    "transportation": Category.TRANSPORT,
    "taxi": Category.TRANSPORT,
    "uber": Category.TRANSPORT,
    "lyft": Category.TRANSPORT,
    "rideshare": Category.TRANSPORT,
    "bus": Category.TRANSPORT,
    "train": Category.TRANSPORT,
    "public transit": Category.TRANSPORT,
    "gas": Category.TRANSPORT,
    "fuel": Category.TRANSPORT,
    "gas & fuel": Category.TRANSPORT,
    "parking": Category.TRANSPORT,
    "flight": Category.TRANSPORT,
    # Rent
    "housing": Category.RENT,
    "landlord": Category.RENT,
    "mortgage": Category.RENT,
    # Entertainment
    "movie": Category.ENTERTAINMENT,
    "movies": Category.ENTERTAINMENT,
    "cinema": Category.ENTERTAINMENT,
    "concert": Category.ENTERTAINMENT,
    "games": Category.ENTERTAINMENT,
    "streaming": Category.ENTERTAINMENT,
    "netflix": Category.ENTERTAINMENT,
}
