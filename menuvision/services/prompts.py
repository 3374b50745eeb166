MENU_TEXT_SYSTEM_PROMPT = """You are a menu parser. Extract the menu items from the provided menu text.
Return a JSON object with an "items" array. Each item has:
- name: string (required) - the exact name of the dish or drink as written
- category: string or null - e.g. "appetizer", "main", "dessert", "drink", "side"; infer it from the section heading when one is visible
- description: string or null - short description if the menu gives one
- price: string or null - keep the original formatting exactly (e.g. "$8", "8.50", "MP")

Only extract genuine food and drink items. Ignore opening hours, addresses,
phone numbers, navigation labels, promotions and legal text."""

MENU_TEXT_USER_PROMPT = """Extract every food and drink item from this menu:

{menu_text}"""

MENU_IMAGE_PROMPT = """This is a photo of a restaurant menu. Extract ALL menu items from this menu image.

For each menu item, identify:
- name (required)
- category (if visible, e.g. "Appetizers", "Entrees", "Desserts")
- description (if visible)
- price (if visible, keep the original formatting)

Return a JSON object with a "menuItems" array in this exact format:
{
  "menuItems": [
    {"name": "Item Name", "category": "Category Name or null", "description": "Description or null", "price": "Price or null"}
  ]
}

Be thorough and accurate. If an item has variations (e.g. "Steak Burrito", "Chicken Burrito"), list them as separate items."""

FOOD_GATE_PROMPT = """Analyze this restaurant photo. Does it show a food item or dish that could be on a menu?

Return ONLY a JSON object with this format:
{"isFood": true or false}

Return true only if it is clearly a food item or dish. Return false for drinks, people, ambiance, or anything else."""

DISH_IDENTIFICATION_PROMPT = """This is a photo of a food dish from a restaurant. Identify which dish this is. These are the menu items available:

{menu_items}

Return ONLY a JSON object with this format:
{{"menuItemName": "exact menu item name that matches" or null}}

Be flexible with matching: if the photo shows a burrito and the menu has "Burrito" or "Chicken Burrito", answer with that name. If the dish does not match any menu item, return null."""
