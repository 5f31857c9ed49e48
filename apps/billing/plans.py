from typing import Dict
from pydantic import BaseModel
from framework.config import Settings, settings

UNLIMITED = -1


class PlanLimits(BaseModel):
    widgets: int
    team_members: int


class Plan(BaseModel):
    id: str
    name: str
    description: str
    price_id: str
    price: int
    interval: str = "month"
    features: list
    limits: PlanLimits


def build_plans(config: Settings) -> Dict[str, Plan]:
    """Plan catalog; price ids come from the environment."""
    return {
        "solo": Plan(
            id="solo",
            name="Solo Agent",
            description="Perfect for individual agents",
            price_id=config.STRIPE_PRICE_SOLO,
            price=29,
            features=[
                "1 chat widget",
                "Unlimited conversations",
                "Lead qualification",
                "Email notifications",
                "Basic analytics",
            ],
            limits=PlanLimits(widgets=1, team_members=1),
        ),
        "team": Plan(
            id="team",
            name="Team",
            description="For small teams and partnerships",
            price_id=config.STRIPE_PRICE_TEAM,
            price=79,
            features=[
                "5 chat widgets",
                "Unlimited conversations",
                "Lead qualification",
                "Email notifications",
                "Advanced analytics",
                "Team management (up to 5)",
                "Lead assignment",
            ],
            limits=PlanLimits(widgets=5, team_members=5),
        ),
        "brokerage": Plan(
            id="brokerage",
            name="Brokerage",
            description="For brokerages and large teams",
            price_id=config.STRIPE_PRICE_BROKERAGE,
            price=199,
            features=[
                "Unlimited widgets",
                "Unlimited conversations",
                "Lead qualification",
                "Email notifications",
                "Advanced analytics",
                "Unlimited team members",
                "Lead assignment",
                "Priority support",
                "Custom branding",
            ],
            limits=PlanLimits(widgets=UNLIMITED, team_members=UNLIMITED),
        ),
    }


PLANS = build_plans(settings)


def plan_limits(plan_id: str) -> PlanLimits:
    """Limits of a plan; trials and unknown plans get the solo limits."""
    plan = PLANS.get(plan_id) or PLANS["solo"]
    return plan.limits
