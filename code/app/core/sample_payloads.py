SAMPLE_SCENARIO = {
    "id": "young-professional",
    "currency": "USD",
    "months": 60,
    "initialCash": 8000,
    "incomes": [
        {"id": "i1", "label": "Salary", "amount": 4500, "growthRate": 5, "startMonth": 0},
        {"id": "i2", "label": "Freelance", "amount": 500, "growthRate": 0, "startMonth": 0},
    ],
    "expenses": [
        {"id": "e1", "label": "Rent", "amount": 1400, "category": "rent", "growthRate": 3, "startMonth": 0},
        {"id": "e2", "label": "Groceries", "amount": 350, "category": "fixed", "growthRate": 2, "startMonth": 0},
        {"id": "e3", "label": "Transport", "amount": 200, "category": "fixed", "growthRate": 2, "startMonth": 0},
        {"id": "e4", "label": "Dining & Social", "amount": 300, "category": "discretionary", "growthRate": 2, "startMonth": 0},
        {"id": "e5", "label": "Subscriptions", "amount": 80, "category": "discretionary", "growthRate": 0, "startMonth": 0},
        {"id": "e6", "label": "Utilities", "amount": 120, "category": "fixed", "growthRate": 2, "startMonth": 0},
    ],
    "debts": [
        {"id": "d1", "label": "Student Loan", "balance": 18000, "annualRate": 5.5, "minPayment": 200, "strategy": "aggressive"},
        {"id": "d2", "label": "Credit Card", "balance": 2500, "annualRate": 19.9, "minPayment": 75, "strategy": "aggressive"},
    ],
    "investments": [
        {"id": "inv1", "label": "401(k)", "currentValue": 5000, "monthlyContribution": 300, "expectedAnnualReturn": 7},
        {"id": "inv2", "label": "Index Fund", "currentValue": 2000, "monthlyContribution": 150, "expectedAnnualReturn": 8},
    ],
    "inflationRate": 3,
    "taxRate": 20,
    "oneTimeEvents": [
        {"id": "ev1", "label": "Annual bonus", "amount": 3000, "month": 11},
    ],
    "goals": [
        {"id": "g1", "label": "Emergency fund", "targetAmount": 15000, "targetMonth": 24, "type": "savings"},
    ],
}

SAMPLE_ADVISOR_REQUEST = {
    "scenario": SAMPLE_SCENARIO,
    "preferences": {"riskProfile": "med", "emergencyFundMonths": 3, "advisorTone": "concise"},
}
