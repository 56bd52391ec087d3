from .rules import DEFAULT_POLICY_RULES, PolicyRulesKnowledgeBase, split_rule

__all__ = ["DEFAULT_POLICY_RULES", "PolicyRulesKnowledgeBase", "split_rule"]
