# bins.py
# Display metadata for each bin, used by the result dialog and the waste-wise guide.
from dataclasses import dataclass, asdict
from typing import Tuple

from models import BinColor


@dataclass(frozen=True)
class BinDetails:
    bin_color: str
    icon: str
    color_class: str
    bg_color_class: str
    label: str
    description: str
    accepted: Tuple[str, ...]
    not_accepted: Tuple[str, ...]

    def to_dict(self):
        d = asdict(self)
        d["accepted"] = list(self.accepted)
        d["not_accepted"] = list(self.not_accepted)
        return d


BIN_DETAILS = {
    BinColor.GREEN: BinDetails(
        bin_color="Green",
        icon="leaf",
        color_class="text-bin-green",
        bg_color_class="bg-bin-green/10",
        label="Organic",
        description="For compostable, organic materials. These items are turned into nutrient-rich soil.",
        accepted=("Fruit & Vegetable Scraps", "Coffee Grounds & Filters", "Eggshells",
                  "Yard Trimmings", "Grass Cuttings"),
        not_accepted=("Plastic Bags", "Food-soiled Paper", "Pet Waste", "Diapers",
                      "Liquids or Grease"),
    ),
    BinColor.BLUE: BinDetails(
        bin_color="Blue",
        icon="recycle",
        color_class="text-bin-blue",
        bg_color_class="bg-bin-blue/10",
        label="Recycling",
        description="For clean and dry recyclable materials. These items are processed and made into new products.",
        accepted=("Plastic Bottles & Jugs (#1, #2)", "Glass Jars & Bottles",
                  "Aluminum & Tin Cans", "Paper & Cardboard"),
        not_accepted=("Plastic Bags or Film", "Food Waste", "Styrofoam", "Electronics",
                      "Ceramics"),
    ),
    BinColor.RED: BinDetails(
        bin_color="Red",
        icon="trash-2",
        color_class="text-bin-red",
        bg_color_class="bg-bin-red/10",
        label="Landfill",
        description="For items that cannot be recycled or composted. This waste goes to the landfill.",
        accepted=("Plastic Bags & Film", "Styrofoam", "Snack Wrappers", "Broken Ceramics",
                  "Diapers"),
        not_accepted=("Recyclables", "Organics", "Hazardous Waste", "Electronics",
                      "Batteries"),
    ),
}

DEFAULT_DETAILS = BIN_DETAILS[BinColor.RED]


def get_bin_details(bin_color):
    # Anything we don't recognise falls back to the landfill entry
    if isinstance(bin_color, BinColor):
        return BIN_DETAILS[bin_color]
    if isinstance(bin_color, str):
        for color in BinColor:
            if color.value.lower() == bin_color.strip().lower():
                return BIN_DETAILS[color]
    return DEFAULT_DETAILS
