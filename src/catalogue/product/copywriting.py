"""Marketing copy for products, written by the text generator."""

from shared.text import TextGenerator, generate_or_fallback

OFFLINE_DESCRIPTION = "Fresh and delicious ingredients prepared daily."
FALLBACK_DESCRIPTION = "A delicious blend of fresh ingredients."

DESCRIPTION_PROMPT = (
    'Write a mouth-watering, short marketing description (max 2 sentences) for a salad or meal named "{name}" '
    "containing the following ingredients: {ingredients}. Focus on health benefits and freshness."
)


async def generate_product_description(generator: TextGenerator | None, name: str, ingredients: str) -> str:
    prompt = DESCRIPTION_PROMPT.format(name=name, ingredients=ingredients)
    return await generate_or_fallback(
        generator,
        prompt,
        fallback=FALLBACK_DESCRIPTION,
        offline_fallback=OFFLINE_DESCRIPTION,
    )
