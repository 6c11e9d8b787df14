"""Product Rules Core package.

This package provides the programmable business-rule core of the insurance
product administration console, including:

- Condition tree model and structural edits for the rule builder
- Condition and rule evaluation with an audit trace
- Pricing simulation with coverage and policy level premium
- Static conflict detection over rule sets
- A thin FastAPI surface exposing the above

Usage:
    # Development (from project root):
    uvicorn rulecore.app:app --reload --port 8080

Modules:
    app: FastAPI application entry point
    conditions: Condition tree model, edits and validation
    rules: Expression evaluator, rule evaluator, versions, conflict detector
    simulation: Pricing simulation engine and pricing configuration
    routes: API routers
    schemas: Pydantic request/response models
    config: Environment-driven defaults
"""

__version__ = "0.3.0"
