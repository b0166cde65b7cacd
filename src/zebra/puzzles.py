"""Built-in puzzle records, in the same shape the loader produces."""

# https://en.wikipedia.org/wiki/Zebra_Puzzle
CLASSIC_ZEBRA = {
    "id": "classic-zebra",
    "houses": 5,
    "attributes": {
        "color": ["ivory", "green", "red", "blue", "yellow"],
        "nationality": ["english", "spanish", "ukrainian", "norwegian", "japanese"],
        "drink": ["coffee", "milk", "orange juice", "tea", "water"],
        "smoke": ["old gold", "kools", "chesterfield", "parliament", "lucky strike"],
        "pet": ["zebra", "dog", "snails", "fox", "horse"],
    },
    "constraints": [
        "nationality/0 == color/2",
        "nationality/1 == pet/1",
        "drink/0 == color/1",
        "nationality/2 == drink/3",
        "color/0 +1 color/1",
        "smoke/0 == pet/2",
        "smoke/1 == color/4",
        "drink/1 == number/2",
        "nationality/3 == number/0",
        "smoke/2 next pet/3",
        "smoke/1 next pet/4",
        "smoke/4 == drink/2",
        "nationality/4 == smoke/3",
        "nationality/3 next color/3",
        # Who owns the zebra? Who drinks water? Neither is stated.
        "pet/0?",
    ],
}

BUILTIN_PUZZLES = {
    CLASSIC_ZEBRA["id"]: CLASSIC_ZEBRA,
}
