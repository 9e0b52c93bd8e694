"""
Prompt templates for the AI extraction calls.

Every prompt asks for exactly one JSON object in the Recipe shape; the
caller locates and parses that object and treats anything else as a failure.
"""

RECIPE_JSON_SHAPE = (
    '{{"title":"","servings":4,"prepTime":"","cookTime":"","imageUrl":null,'
    '"ingredients":["500g / 1.1 lb item"],'
    '"steps":[{{"instruction":"","ingredients":["500g / 1.1 lb item"]}}],'
    '"tips":[],"source":"{source}","sourceUrl":{source_url},"author":null}}'
)

SHARED_RULES = """- Write every measurement in both metric and imperial form, e.g. "500g / 1.1 lb", "1 cup / 240ml", "400°F / 200°C"
- Give every step an "ingredients" array whose entries are copied exactly from the top-level "ingredients" list
- Keep one action per step
- {language_instruction}
- Respond with the JSON object only, no commentary"""

WEBPAGE_PROMPT = """Read the recipe on this webpage and return it as a single JSON object in this shape:
{shape}

RULES:
{rules}

WEBPAGE TEXT:
{page_text}"""

PHOTO_PROMPT = """These photos show a recipe. They may be printed cookbook pages, recipe cards, handwritten notes or screenshots.
Read all of the text, including handwriting and notes in the margins, and return the recipe as a single JSON object in this shape:
{shape}

RULES:
- Where handwriting is unclear, choose the most likely reading from context
- Turn vague amounts into standard measurements, e.g. "a handful" becomes "1/2 cup / 60g"
- Put handwritten tips or notes into "tips"
{rules}"""

TRANSCRIPT_PROMPT = """This is the transcript of a cooking video. Reconstruct the recipe being cooked and return it as a single JSON object in this shape:
{shape}

RULES:
- Estimate quantities the cook does not state
{rules}

TRANSCRIPT:
{transcript}"""

ENHANCE_PROMPT = """Rewrite this recipe so that every measurement has dual units and every step lists the ingredients it uses.

RECIPE:
{recipe_json}

RULES:
{rules}
- Do not change the title, the number of steps or their order
- Return the complete recipe"""

REPAIR_PROMPT = """This recipe has quality problems: {issue_list}

RECIPE:
{recipe_json}

FIXES:
{fixes}

RULES:
{rules}
- Return the complete recipe"""

TRANSLATE_PROMPT = """Translate this recipe into {language_name}.

RECIPE:
{recipe_json}

RULES:
- Translate the title, every ingredient, every step instruction (including the step ingredient lists) and every tip
- Keep the JSON keys in English and keep the same structure
- Keep dual units on every measurement
- Copy "source", "sourceUrl" and "imageUrl" unchanged
- Respond with the JSON object only, no commentary"""
