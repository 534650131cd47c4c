from models import CategoryGroup, TemplateType

# name, percentage, group, color, [(sub name, percentage of parent, color)]
SYSTEM_TEMPLATES = [
    {
        "name": "50-30-20 Rule",
        "description": (
            "Allocate 50% of your income to needs, 30% to wants, and 20% to "
            "savings and debt repayment."
        ),
        "template_type": TemplateType.fifty_thirty_twenty,
        "categories": [
            (
                "Needs",
                50,
                CategoryGroup.essential,
                "#4caf50",
                [
                    ("Housing", 25, "#81c784"),
                    ("Utilities", 10, "#a5d6a7"),
                    ("Groceries", 10, "#c8e6c9"),
                    ("Transportation", 5, "#e8f5e9"),
                ],
            ),
            (
                "Wants",
                30,
                CategoryGroup.non_essential,
                "#2196f3",
                [
                    ("Dining Out", 10, "#64b5f6"),
                    ("Entertainment", 10, "#90caf9"),
                    ("Shopping", 5, "#bbdefb"),
                    ("Subscriptions", 5, "#e3f2fd"),
                ],
            ),
            (
                "Savings",
                20,
                CategoryGroup.savings,
                "#9c27b0",
                [
                    ("Emergency Fund", 10, "#ba68c8"),
                    ("Retirement", 5, "#ce93d8"),
                    ("Debt Repayment", 5, "#e1bee7"),
                ],
            ),
        ],
    },
    {
        "name": "Zero-Based Budget",
        "description": (
            "Assign every dollar of your income to a specific category until "
            "your income minus expenses equals zero."
        ),
        "template_type": TemplateType.zero_based,
        "categories": [
            (
                "Housing",
                25,
                CategoryGroup.essential,
                "#4caf50",
                [("Rent/Mortgage", 20, "#81c784"), ("Home Maintenance", 5, "#a5d6a7")],
            ),
            (
                "Utilities",
                10,
                CategoryGroup.essential,
                "#2196f3",
                [
                    ("Electricity", 3, "#64b5f6"),
                    ("Water", 2, "#90caf9"),
                    ("Internet", 3, "#bbdefb"),
                    ("Phone", 2, "#e3f2fd"),
                ],
            ),
            (
                "Food",
                15,
                CategoryGroup.essential,
                "#ff9800",
                [("Groceries", 10, "#ffb74d"), ("Dining Out", 5, "#ffe0b2")],
            ),
            (
                "Transportation",
                10,
                CategoryGroup.essential,
                "#f44336",
                [
                    ("Gas", 5, "#e57373"),
                    ("Car Maintenance", 3, "#ef9a9a"),
                    ("Public Transit", 2, "#ffcdd2"),
                ],
            ),
            (
                "Personal",
                10,
                CategoryGroup.non_essential,
                "#9c27b0",
                [
                    ("Clothing", 3, "#ba68c8"),
                    ("Entertainment", 4, "#ce93d8"),
                    ("Subscriptions", 3, "#e1bee7"),
                ],
            ),
            (
                "Savings",
                20,
                CategoryGroup.savings,
                "#009688",
                [("Emergency Fund", 10, "#4db6ac"), ("Retirement", 10, "#80cbc4")],
            ),
            (
                "Debt Repayment",
                10,
                CategoryGroup.savings,
                "#607d8b",
                [("Credit Card", 5, "#90a4ae"), ("Loans", 5, "#b0bec5")],
            ),
        ],
    },
    {
        "name": "Envelope System",
        "description": (
            "Divide your cash into different envelopes for specific spending "
            "categories."
        ),
        "template_type": TemplateType.envelope,
        "categories": [
            ("Housing", 30, CategoryGroup.essential, "#4caf50", []),
            ("Utilities", 10, CategoryGroup.essential, "#2196f3", []),
            ("Groceries", 15, CategoryGroup.essential, "#ff9800", []),
            ("Transportation", 10, CategoryGroup.essential, "#f44336", []),
            ("Entertainment", 5, CategoryGroup.non_essential, "#9c27b0", []),
            ("Dining Out", 5, CategoryGroup.non_essential, "#e91e63", []),
            ("Clothing", 5, CategoryGroup.non_essential, "#00bcd4", []),
            ("Savings", 15, CategoryGroup.savings, "#009688", []),
            ("Miscellaneous", 5, CategoryGroup.other, "#607d8b", []),
        ],
    },
]
