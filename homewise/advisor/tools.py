"""Advisor Tools - OpenAI function calling definitions and dispatcher.

This module defines the tools the advisor model can call, and the single
dispatcher that runs them. The chat loop and the REST tool endpoint both
go through run_tool, so validation and result shapes are identical on
either path.

Every handler returns a JSON-serialisable dict. Live-data handlers turn
upstream failures into an error dict with a hint instead of raising.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from homewise.advisor.guardrails import tool_validation_error_result, validate_tool_params
from homewise.advisor.knowledge import lookup_area_info, retrieve
from homewise.exceptions import HomewiseError
from homewise.finance.calculators import (
    DEFAULT_PMI_RATE,
    DEFAULT_PROPERTY_TAX_RATE,
    calculate_dti,
    calculate_max_home_price,
    calculate_monthly_payment,
    calculate_rent_vs_buy,
    format_usd,
    stress_test_income_loss,
    stress_test_rate_hike,
)
from homewise.schemas.report import ComputedReport

logger = logging.getLogger(__name__)


# ============================================================================
# TOOL SCHEMAS FOR OPENAI
# ============================================================================

_SCENARIO_SCHEMA = {
    "type": "object",
    "properties": {
        "label": {"type": "string"},
        "home_price": {"type": "number"},
        "down_payment_amount": {"type": "number"},
        "interest_rate": {"type": "number"},
        "loan_term_years": {"type": "number"},
    },
    "required": ["label", "home_price", "down_payment_amount", "interest_rate", "loan_term_years"],
}

TOOL_SCHEMAS = [
    {
        "type": "function",
        "function": {
            "name": "recalculate_affordability",
            "description": "Recalculate max home price and monthly payments with different parameters (e.g. different income, down payment, rate, or loan term)",
            "parameters": {
                "type": "object",
                "properties": {
                    "annual_gross_income": {"type": "number"},
                    "monthly_debt_payments": {"type": "number"},
                    "down_payment_amount": {"type": "number"},
                    "interest_rate": {"type": "number", "description": "Annual rate as decimal, e.g. 0.065"},
                    "loan_term_years": {"type": "number"},
                },
                "required": [
                    "annual_gross_income",
                    "monthly_debt_payments",
                    "down_payment_amount",
                    "interest_rate",
                    "loan_term_years",
                ],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "calculate_payment_for_price",
            "description": "Calculate the monthly payment breakdown for a specific home price",
            "parameters": {
                "type": "object",
                "properties": {
                    "home_price": {"type": "number"},
                    "down_payment_amount": {"type": "number"},
                    "interest_rate": {"type": "number", "description": "Annual rate as decimal"},
                    "loan_term_years": {"type": "number"},
                },
                "required": ["home_price", "down_payment_amount", "interest_rate", "loan_term_years"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "compare_scenarios",
            "description": "Compare two home buying scenarios side-by-side (e.g. different prices, rates, or loan terms)",
            "parameters": {
                "type": "object",
                "properties": {
                    "scenario_a": _SCENARIO_SCHEMA,
                    "scenario_b": _SCENARIO_SCHEMA,
                },
                "required": ["scenario_a", "scenario_b"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "stress_test",
            "description": "Run a stress test: what happens if rates increase or income drops",
            "parameters": {
                "type": "object",
                "properties": {
                    "test_type": {"type": "string", "enum": ["rate_hike", "income_loss"]},
                    "loan_amount": {"type": "number"},
                    "current_rate": {"type": "number", "description": "As decimal"},
                    "rate_increase": {"type": "number", "description": "For rate_hike: increase as decimal (e.g. 0.02 for 2%)"},
                    "income_reduction_percent": {"type": "number", "description": "For income_loss: percent reduction (e.g. 50)"},
                    "loan_term_years": {"type": "number"},
                    "gross_monthly_income": {"type": "number"},
                    "existing_monthly_debts": {"type": "number"},
                    "monthly_housing_payment": {"type": "number"},
                    "remaining_savings": {"type": "number"},
                    "monthly_expenses": {"type": "number"},
                    "property_tax_monthly": {"type": "number"},
                    "insurance_monthly": {"type": "number"},
                },
                "required": ["test_type"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "rent_vs_buy",
            "description": "Compare renting vs buying for a given number of years",
            "parameters": {
                "type": "object",
                "properties": {
                    "home_price": {"type": "number"},
                    "down_payment_amount": {"type": "number"},
                    "interest_rate": {"type": "number"},
                    "loan_term_years": {"type": "number"},
                    "monthly_rent": {"type": "number"},
                    "years": {"type": "number"},
                },
                "required": [
                    "home_price",
                    "down_payment_amount",
                    "interest_rate",
                    "loan_term_years",
                    "monthly_rent",
                    "years",
                ],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "analyze_property",
            "description": "Analyze whether the buyer can afford a specific property at a given listing price. Returns monthly payment, DTI, stretch factor, and affordability verdict.",
            "parameters": {
                "type": "object",
                "properties": {
                    "listing_price": {"type": "number", "description": "Property listing price"},
                    "address": {"type": "string", "description": "Property address (optional)"},
                    "property_tax_annual": {"type": "number", "description": "Annual property tax amount (optional, defaults to 1.1% of price)"},
                    "hoa_monthly": {"type": "number", "description": "Monthly HOA dues (optional, defaults to 0)"},
                },
                "required": ["listing_price"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "lookup_mortgage_info",
            "description": "Search the mortgage knowledge base for information about loan types (FHA, VA, conventional, ARM), down payments, PMI, DTI ratios, closing costs, credit score impacts, first-time buyer programs, property taxes, and home inspections. Use this when the user asks general mortgage or homebuying questions.",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "The mortgage/homebuying topic to look up"},
                },
                "required": ["query"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_current_rates",
            "description": "Get today's live mortgage interest rates (30-year fixed, 15-year fixed, 5/1 ARM) from the Federal Reserve. Use this when the user asks about current or today's mortgage rates.",
            "parameters": {"type": "object", "properties": {}, "required": []},
        },
    },
    {
        "type": "function",
        "function": {
            "name": "search_properties",
            "description": "Search for homes currently for sale in a specific US city. Returns up to 5 listings with prices, beds, baths, sqft, and addresses. Use this when the user asks to find or search for homes/houses in an area.",
            "parameters": {
                "type": "object",
                "properties": {
                    "location": {"type": "string", "description": "City and state (e.g., 'Austin, TX')"},
                    "max_price": {"type": "number", "description": "Maximum listing price (optional)"},
                    "min_beds": {"type": "number", "description": "Minimum number of bedrooms (optional)"},
                },
                "required": ["location"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_area_info",
            "description": "Get property tax rates, median home prices, school ratings, and cost of living index for a US metro area. Covers top 50 US metros. Use this when the user asks about taxes, schools, or cost of living in a specific area.",
            "parameters": {
                "type": "object",
                "properties": {
                    "location": {"type": "string", "description": "City and state (e.g., 'Denver, CO')"},
                },
                "required": ["location"],
            },
        },
    },
]


def get_tool_schemas() -> List[Dict[str, Any]]:
    """Get the tool schemas for OpenAI function calling."""
    return TOOL_SCHEMAS


# ============================================================================
# TOOL CONTEXT
# ============================================================================

@dataclass
class ToolContext:
    """Per-call collaborators. report is only needed by analyze_property."""
    report: Optional[ComputedReport] = None
    fred: Any = None
    property_search: Any = None


# ============================================================================
# FINANCIAL MATH HANDLERS
# ============================================================================

# Fixed assumptions for what-if tools
TOOL_INSURANCE_ANNUAL = 1500


def _payment(scenario: Dict[str, Any]):
    return calculate_monthly_payment(
        home_price=scenario["home_price"],
        down_payment_amount=scenario["down_payment_amount"],
        interest_rate=scenario["interest_rate"],
        loan_term_years=scenario["loan_term_years"],
        property_tax_rate=DEFAULT_PROPERTY_TAX_RATE,
        insurance_annual=TOOL_INSURANCE_ANNUAL,
        pmi_rate=DEFAULT_PMI_RATE,
    )


async def _recalculate_affordability(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    result = calculate_max_home_price(
        annual_gross_income=args["annual_gross_income"],
        monthly_debt_payments=args["monthly_debt_payments"],
        down_payment_amount=args["down_payment_amount"],
        interest_rate=args["interest_rate"],
        loan_term_years=args["loan_term_years"],
        property_tax_rate=DEFAULT_PROPERTY_TAX_RATE,
        insurance_annual=TOOL_INSURANCE_ANNUAL,
    )
    payment = _payment({**args, "home_price": result.max_home_price})
    dti = calculate_dti(
        gross_monthly_income=args["annual_gross_income"] / 12,
        proposed_housing_payment=payment.total_monthly,
        existing_monthly_debts=args["monthly_debt_payments"],
    )
    return {**result.to_dict(), "payment": payment.model_dump(), "dti": dti.model_dump()}


async def _calculate_payment_for_price(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    return _payment(args).model_dump()


async def _compare_scenarios(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    a = args["scenario_a"]
    b = args["scenario_b"]
    payment_a = _payment(a)
    payment_b = _payment(b)
    return {
        "scenario_a": {
            "label": a.get("label"),
            "payment": payment_a.model_dump(),
            "total_cost": round(payment_a.total_monthly * a["loan_term_years"] * 12),
        },
        "scenario_b": {
            "label": b.get("label"),
            "payment": payment_b.model_dump(),
            "total_cost": round(payment_b.total_monthly * b["loan_term_years"] * 12),
        },
        "difference": round(abs(payment_a.total_monthly - payment_b.total_monthly)),
    }


async def _stress_test(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    if args["test_type"] == "rate_hike":
        result = stress_test_rate_hike(
            loan_amount=args["loan_amount"],
            base_rate=args["current_rate"],
            rate_increase=args["rate_increase"],
            loan_term_years=args.get("loan_term_years", 30),
            gross_monthly_income=args["gross_monthly_income"],
            existing_monthly_debts=args["existing_monthly_debts"],
            property_tax_monthly=args.get("property_tax_monthly", 0),
            insurance_monthly=args.get("insurance_monthly", 125),
        )
    else:
        result = stress_test_income_loss(
            gross_monthly_income=args["gross_monthly_income"],
            income_reduction_percent=args["income_reduction_percent"],
            monthly_housing_payment=args["monthly_housing_payment"],
            existing_monthly_debts=args["existing_monthly_debts"],
            remaining_savings=args.get("remaining_savings", 0),
            monthly_expenses=args.get("monthly_expenses", 3000),
        )
    return result.to_dict()


async def _rent_vs_buy(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    return calculate_rent_vs_buy(
        home_price=args["home_price"],
        down_payment_amount=args["down_payment_amount"],
        interest_rate=args["interest_rate"],
        loan_term_years=args["loan_term_years"],
        monthly_rent=args["monthly_rent"],
        years=args["years"],
        property_tax_rate=DEFAULT_PROPERTY_TAX_RATE,
        insurance_annual=TOOL_INSURANCE_ANNUAL,
    ).to_dict()


def _property_verdict(stretch_factor: float) -> str:
    if stretch_factor <= 0.85:
        return "comfortable"
    if stretch_factor <= 1.0:
        return "tight but affordable"
    if stretch_factor <= 1.15:
        return "stretch - over budget"
    return "significantly over budget"


async def _analyze_property(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    """Affordability of one listing, priced against the report under discussion."""
    report = ctx.report
    if report is None:
        return {"error": "analyze_property needs the analysis report. Run an analysis first."}

    affordability = report.affordability
    listing_price = args["listing_price"]
    hoa_monthly = args.get("hoa_monthly") or 0
    property_tax_annual = args.get("property_tax_annual")
    tax_rate = property_tax_annual / listing_price if property_tax_annual else DEFAULT_PROPERTY_TAX_RATE

    down_payment = min(affordability.down_payment_amount, listing_price)
    down_payment_percent = down_payment / listing_price * 100
    rate = report.market_snapshot.mortgage_rates.thirty_year_fixed / 100

    payment = calculate_monthly_payment(
        home_price=listing_price,
        down_payment_amount=down_payment,
        interest_rate=rate,
        loan_term_years=30,
        property_tax_rate=tax_rate,
        insurance_annual=TOOL_INSURANCE_ANNUAL,
        pmi_rate=0 if down_payment_percent >= 20 else DEFAULT_PMI_RATE,
    )
    total_monthly = round(payment.total_monthly + hoa_monthly, 2)
    dti = calculate_dti(
        gross_monthly_income=affordability.gross_monthly_income,
        proposed_housing_payment=total_monthly,
        existing_monthly_debts=affordability.monthly_debt_payments,
    )

    if affordability.max_home_price > 0:
        stretch_factor = round(listing_price / affordability.max_home_price, 2)
    else:
        stretch_factor = 99.0

    return {
        "address": args.get("address") or "Specified property",
        "listing_price": format_usd(listing_price),
        "monthly_payment": format_usd(total_monthly),
        "payment_breakdown": {
            "principal_and_interest": format_usd(payment.principal + payment.interest),
            "property_tax": format_usd(payment.property_tax),
            "insurance": format_usd(payment.home_insurance),
            "pmi": format_usd(payment.pmi) if payment.pmi > 0 else "N/A",
            "hoa": format_usd(hoa_monthly) if hoa_monthly > 0 else "N/A",
        },
        "dti": {
            "front_end": f"{dti.front_end_ratio}%",
            "back_end": f"{dti.back_end_ratio}%",
            "status": dti.back_end_status,
        },
        "stretch_factor": stretch_factor,
        "percent_of_max": f"{round(stretch_factor * 100)}%",
        "verdict": _property_verdict(stretch_factor),
        "max_home_price": format_usd(affordability.max_home_price),
        "recommended_price": format_usd(affordability.recommended_home_price),
        "difference_from_recommended": format_usd(listing_price - affordability.recommended_home_price),
    }


# ============================================================================
# KNOWLEDGE AND LIVE DATA HANDLERS
# ============================================================================

async def _lookup_mortgage_info(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    results = retrieve(args.get("query") or "", 3)
    return {"documents": [r.to_dict() for r in results]}


async def _get_current_rates(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    if ctx.fred is None:
        logger.warning("get_current_rates called without a FRED client")
        return {"error": "Unable to fetch current rates. Using report rates instead.", "fallback": True}
    try:
        return await ctx.fred.get_current_rates()
    except HomewiseError as e:
        logger.warning(f"Live rate lookup failed: {e}")
        return {"error": "Unable to fetch current rates. Using report rates instead.", "fallback": True}


SEARCH_HINT = (
    "Property search requires a RAPIDAPI_KEY. The user can still use "
    "analyze_property to check affordability for a specific price."
)


async def _search_properties(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    if ctx.property_search is None:
        return {"error": "Property search is not configured", "hint": SEARCH_HINT}
    try:
        listings = await ctx.property_search.search_properties(
            location=args["location"],
            max_price=args.get("max_price"),
            min_beds=args.get("min_beds"),
        )
    except HomewiseError as e:
        logger.warning(f"Property search failed: {e}")
        return {"error": str(e) or "Property search failed", "hint": SEARCH_HINT}

    if not listings:
        return {"message": "No listings found matching your criteria.", "results": []}
    return {
        "location": args["location"],
        "result_count": len(listings),
        "listings": listings,
        "source": "Zillow via RapidAPI",
    }


async def _get_area_info(args: Dict[str, Any], ctx: ToolContext) -> Dict[str, Any]:
    location = args.get("location") or ""
    match = lookup_area_info(location)
    if match is None:
        return {
            "error": f'No data available for "{location}". This tool covers the top 50 US metro areas.',
            "available_example": "Try cities like Austin TX, Denver CO, Seattle WA, etc.",
        }

    key, data = match
    col = data["cost_of_living_index"]
    if col > 100:
        col_note = f"{col - 100}% above national average"
    else:
        col_note = f"{100 - col}% below national average"

    result = {
        "location": key,
        "state": data["state"],
        "property_tax_rate": f"{data['property_tax_rate'] * 100:.2f}%",
        "estimated_annual_tax_on_400k": format_usd(400_000 * data["property_tax_rate"]),
        "median_home_price": format_usd(data["median_home_price"]),
        "school_rating": data["school_rating"],
        "cost_of_living_index": col,
        "cost_of_living_note": col_note,
    }
    if data.get("notes"):
        result["notes"] = data["notes"]
    return result


# ============================================================================
# TOOL DISPATCHER
# ============================================================================

ToolHandler = Callable[[Dict[str, Any], ToolContext], Awaitable[Dict[str, Any]]]

TOOL_HANDLERS: Dict[str, ToolHandler] = {
    "recalculate_affordability": _recalculate_affordability,
    "calculate_payment_for_price": _calculate_payment_for_price,
    "compare_scenarios": _compare_scenarios,
    "stress_test": _stress_test,
    "rent_vs_buy": _rent_vs_buy,
    "analyze_property": _analyze_property,
    "lookup_mortgage_info": _lookup_mortgage_info,
    "get_current_rates": _get_current_rates,
    "search_properties": _search_properties,
    "get_area_info": _get_area_info,
}


def verify_tool_registry(
    schemas: Optional[List[Dict[str, Any]]] = None,
    handlers: Optional[Dict[str, ToolHandler]] = None,
) -> None:
    """Raise if any schema lacks a handler or any handler lacks a schema."""
    schemas = TOOL_SCHEMAS if schemas is None else schemas
    handlers = TOOL_HANDLERS if handlers is None else handlers

    schema_names = {s["function"]["name"] for s in schemas}
    handler_names = set(handlers)
    if schema_names != handler_names:
        missing = sorted(schema_names - handler_names)
        extra = sorted(handler_names - schema_names)
        raise RuntimeError(
            f"Tool registry mismatch: schemas without handlers={missing}, handlers without schemas={extra}"
        )


verify_tool_registry()


async def run_tool(tool_name: str, tool_input: Dict[str, Any], ctx: ToolContext) -> str:
    """
    Run one tool call and return its JSON result.

    Args:
        tool_name: Name of the tool to call
        tool_input: Arguments from the model (or the REST caller)
        ctx: Collaborators the handlers need

    Returns:
        JSON string, either the tool's result or a structured error
    """
    handler = TOOL_HANDLERS.get(tool_name)
    if handler is None:
        return json.dumps({"error": f"Unknown tool: {tool_name}"})

    validation = validate_tool_params(tool_name, tool_input)
    if not validation.valid:
        logger.warning(f"Tool validation failed for {tool_name}: {validation.errors}")
        return tool_validation_error_result(validation.errors)

    try:
        result = await handler(tool_input, ctx)
    except KeyError as e:
        logger.warning(f"Tool {tool_name} called without required parameter {e}")
        return json.dumps({"error": f"Missing required parameter: {e.args[0]}"})
    except (TypeError, ValueError, ZeroDivisionError) as e:
        logger.warning(f"Tool {tool_name} rejected its arguments: {e}")
        return json.dumps({"error": f"Invalid parameters for {tool_name}"})

    return json.dumps(result)
