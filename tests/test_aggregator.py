"""Unit tests for ingredient aggregation."""

from conftest import make_meal, make_recipe

from mealplanner.shopping.aggregator import (
    aggregate,
    flatten_meals,
    group_items,
    item_id_for,
    merge_ingredients,
    normalize_ingredient_name,
)
from mealplanner.shopping.categories import Category
from mealplanner.shopping.models import Ingredient, ShoppingItem


class TestNormalizeIngredientName:
    """Tests for normalize_ingredient_name function."""

    def test_lowercase_and_trim(self):
        """Test lower-casing and trimming."""
        assert normalize_ingredient_name("  Chicken Breast ") == "chicken breast"

    def test_inner_whitespace_kept(self):
        """Test that only the ends are trimmed."""
        assert normalize_ingredient_name("olive  oil") == "olive  oil"


class TestItemIdFor:
    """Tests for computed item ids."""

    def test_slug_of_normalized_name(self):
        """Test that ids are slugs of the normalized name."""
        assert item_id_for("Chicken Breast") == "item-chicken-breast"
        assert item_id_for("  olive   oil ") == "item-olive---oil"

    def test_same_ingredient_same_id(self):
        """Test that spelling variants of one ingredient share an id."""
        assert item_id_for("MILK") == item_id_for(" milk")

    def test_special_characters_escaped(self):
        """Test escaping of hyphens, underscores and non-ASCII letters."""
        assert item_id_for("chicken-breast") == "item-chicken_2Dbreast"
        assert item_id_for("salt_flakes") == "item-salt_5Fflakes"
        assert item_id_for("Crème fraîche") == "item-cr_C3_A8me-fra_C3_AEche"

    def test_distinct_names_distinct_ids(self):
        """Test that different merge keys never share an id."""
        names = [
            "chicken breast",
            "chicken-breast",
            "chicken  breast",
            "chicken_breast",
            "chicken_2dbreast",
            "chicken\tbreast",
            "a -b",
            "a- b",
            "a_2D b",
        ]

        ids = [item_id_for(name) for name in names]

        assert len(set(ids)) == len(names)


class TestFlattenMeals:
    """Tests for flatten_meals function."""

    def test_preserves_order(self):
        """Test meal order, then ingredient order."""
        meals = [
            make_meal(0, make_recipe("a", ("Flour", "1", "cup"), ("Egg", "2", None))),
            make_meal(1, make_recipe("b", ("Milk", "1", "cup"))),
        ]
        assert [i.name for i in flatten_meals(meals)] == ["Flour", "Egg", "Milk"]

    def test_meal_without_recipe(self):
        """Test that empty meal slots contribute nothing."""
        assert flatten_meals([make_meal(0, None)]) == []


class TestMergeIngredients:
    """Tests for merge_ingredients function."""

    def test_merge_same_ingredient(self):
        """Test merging equal quantities."""
        result = merge_ingredients(
            [Ingredient("Milk", "1", "cup"), Ingredient("Milk", "1", "cup")]
        )

        assert list(result) == ["milk"]
        assert result["milk"].quantity == "2"
        assert result["milk"].unit == "cup"

    def test_merge_is_case_insensitive(self):
        """Test that names differing in case or padding merge."""
        result = merge_ingredients([Ingredient("Onion", "1", None), Ingredient(" onion ", "2", None)])

        assert len(result) == 1
        assert result["onion"].display_name == "Onion"
        assert result["onion"].quantity == "3"

    def test_first_unit_retained(self):
        """Test that a unit mismatch concatenates and keeps the first unit."""
        result = merge_ingredients(
            [Ingredient("Sugar", "1", "cup"), Ingredient("Sugar", "2", "tbsp")]
        )

        assert result["sugar"].quantity == "1 + 2"
        assert result["sugar"].unit == "cup"

    def test_to_taste_concatenates(self):
        """Test that two 'to taste' quantities are joined as text."""
        result = merge_ingredients(
            [Ingredient("Salt", "to taste", None), Ingredient("Salt", "to taste", None)]
        )

        assert result["salt"].quantity == "to taste + to taste"

    def test_three_way_merge_after_fallback(self):
        """Test that merging continues from the combined text."""
        result = merge_ingredients(
            [
                Ingredient("Butter", "1", "tbsp"),
                Ingredient("Butter", "2", "tbsp"),
                Ingredient("Butter", "50", "g"),
            ]
        )

        assert result["butter"].quantity == "3 + 50"
        assert result["butter"].unit == "tbsp"

    def test_category_from_first_name(self):
        """Test that every merged entry is classified."""
        result = merge_ingredients([Ingredient("Red pepper flakes", "1", "tsp")])

        assert result["red pepper flakes"].category == Category.PANTRY

    def test_empty(self):
        """Test that no ingredients give no entries."""
        assert merge_ingredients([]) == {}


class TestGroupItems:
    """Tests for group_items function."""

    def _item(self, name: str, category: Category) -> ShoppingItem:
        return ShoppingItem(
            id=item_id_for(name), name=name, quantity="1", unit=None, category=category
        )

    def test_category_order_and_sorting(self):
        """Test display order of categories and ordinal sort of names."""
        groups = group_items(
            [
                self._item("Rice", Category.PANTRY),
                self._item("Tomato", Category.PRODUCE),
                self._item("Avocado", Category.PRODUCE),
                self._item("Milk", Category.DAIRY),
            ]
        )

        assert [g.category for g in groups] == [Category.PRODUCE, Category.DAIRY, Category.PANTRY]
        assert [i.name for i in groups[0].items] == ["Avocado", "Tomato"]

    def test_ordinal_sort(self):
        """Test that upper-case names sort before lower-case ones."""
        groups = group_items([self._item("apple", Category.PRODUCE), self._item("Zucchini", Category.PRODUCE)])

        assert [i.name for i in groups[0].items] == ["Zucchini", "apple"]


class TestAggregate:
    """Tests for aggregate function."""

    def test_end_to_end_week(self, milk_and_chicken_meals):
        """Test milk merging and empty-category omission."""
        groups = aggregate(milk_and_chicken_meals)

        assert [g.category for g in groups] == [Category.DAIRY, Category.MEAT]

        dairy, meat = groups
        assert [(i.name, i.quantity, i.unit) for i in dairy.items] == [("Milk", "2", "cup")]
        assert [(i.name, i.quantity, i.unit) for i in meat.items] == [("Chicken breast", "200", "g")]

    def test_items_are_computed(self, milk_and_chicken_meals):
        """Test that computed items carry stable ids and no user flags."""
        milk = aggregate(milk_and_chicken_meals)[0].items[0]

        assert milk.id == "item-milk"
        assert milk.is_checked is False
        assert milk.is_custom is False

    def test_no_meals(self):
        """Test that an empty week gives an empty list."""
        assert aggregate([]) == []

    def test_only_empty_slots(self):
        """Test that meals without recipes give an empty list."""
        assert aggregate([make_meal(0, None), make_meal(1, None)]) == []

    def test_mixed_week(self, mixed_week_meals):
        """Test a week touching every category."""
        groups = {g.category: g.items for g in aggregate(mixed_week_meals)}

        assert [(i.name, i.quantity) for i in groups[Category.PRODUCE]] == [("Bell pepper", "3")]
        assert [i.name for i in groups[Category.DAIRY]] == ["Greek yogurt", "Parmesan"]
        assert [i.name for i in groups[Category.MEAT]] == ["Chicken breast", "Salmon fillet"]

        pantry = {i.name: i for i in groups[Category.PANTRY]}
        assert list(pantry) == ["Red pepper flakes", "Salt", "Soy sauce"]
        assert pantry["Salt"].quantity == "to taste + to taste"
        assert pantry["Soy sauce"].quantity == "3 + 1/2"
        assert pantry["Soy sauce"].unit == "tbsp"

    def test_hyphenated_spelling_is_separate_line(self):
        """Test that names differing only by a hyphen get separate ids."""
        meals = [
            make_meal(0, make_recipe("stir-fry", ("Chicken breast", "200", "g"))),
            make_meal(1, make_recipe("curry", ("chicken-breast", "300", "g"))),
        ]

        items = aggregate(meals)[0].items

        assert [i.name for i in items] == ["Chicken breast", "chicken-breast"]
        assert len({i.id for i in items}) == 2

    def test_overflowing_quantities_do_not_fail(self):
        """Test that a sum too large for a float keeps both quantities."""
        meals = [
            make_meal(0, make_recipe("bread", ("Flour", "1e308", "g"))),
            make_meal(1, make_recipe("cake", ("Flour", "1e308", "g"))),
        ]

        flour = aggregate(meals)[0].items[0]

        assert flour.quantity == "1e308 + 1e308"
        assert flour.unit == "g"

    def test_regeneration_gives_same_ids(self, mixed_week_meals):
        """Test that ids do not change between runs."""
        first = [i.id for g in aggregate(mixed_week_meals) for i in g.items]
        second = [i.id for g in aggregate(mixed_week_meals) for i in g.items]

        assert first == second
        assert len(set(first)) == len(first)
