"""Dataset formats the generator can produce."""

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class DatasetFormatInfo:
    """Description of one output format."""
    id: str
    name: str
    description: str
    structure: str
    good_for: List[str] = field(default_factory=list)
    not_ideal_for: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)
    file_extension: str = ".jsonl"

    @property
    def mime_type(self) -> str:
        return "application/x-jsonlines" if self.file_extension == ".jsonl" else "application/json"

    def export_filename(self) -> str:
        """Suggested file name for an exported dataset in this format."""
        extension = "jsonl" if self.file_extension == ".jsonl" else "json"
        return f"fine_tuning_dataset_{self.id}.{extension}"


DATASET_FORMATS: Dict[str, DatasetFormatInfo] = {
    "alpaca": DatasetFormatInfo(
        id="alpaca",
        name="Alpaca Format",
        description="Standard instruction-following format with instruction, optional input, and output",
        structure='{"instruction": "...", "input": "...", "output": "..."}',
        good_for=["General instruction following", "Task-based training", "Simple Q&A"],
        not_ideal_for=["Multi-turn conversations", "Complex reasoning chains", "Tool usage"],
        examples=["Stanford Alpaca", "Dolly-15k", "OpenAssistant"],
    ),
    "conversation": DatasetFormatInfo(
        id="conversation",
        name="Conversation/Chat Format",
        description="Multi-turn conversation format with roles (user/assistant)",
        structure='[{"role": "user", "content": "..."}, {"role": "assistant", "content": "..."}]',
        good_for=["Chatbots and assistants", "Multi-turn context retention", "Tone/personality alignment"],
        not_ideal_for=["Direct task solving", "Ranking training", "Single-turn instructions"],
        examples=["ShareGPT", "OpenChat", "UltraChat", "OpenOrca"],
    ),
    "chain_of_thought": DatasetFormatInfo(
        id="chain_of_thought",
        name="Chain-of-Thought Reasoning",
        description="Step-by-step reasoning format showing intermediate thinking steps",
        structure='{"question": "...", "answer": "Step 1: ... Step 2: ... Final Answer: ..."}',
        good_for=["Mathematical reasoning", "Logic problems", "Debugging", "Algorithm questions"],
        not_ideal_for=["Creative writing", "Concise outputs", "Simple factual answers"],
        examples=["CoT GSM8K", "Flan-CoT", "Math-Instruct"],
    ),
    "preference_ranking": DatasetFormatInfo(
        id="preference_ranking",
        name="Preference/Ranking Format",
        description="Format comparing good vs bad responses for preference learning",
        structure='{"prompt": "...", "chosen": "...", "rejected": "..."}',
        good_for=["RLHF training", "Response quality alignment", "Tone correction"],
        not_ideal_for=["Direct instruction tuning", "Initial model training", "Task learning"],
        examples=["OpenAssistant RLHF", "Anthropic HH-RLHF", "TRL DPO"],
    ),
    "function_call": DatasetFormatInfo(
        id="function_call",
        name="Function Call/Tool Use",
        description="Format for teaching models to call APIs and use tools",
        structure='{"messages": [...], "function": {"name": "...", "arguments": "..."}}',
        good_for=["Autonomous agents", "API integration", "Tool usage", "Plugin systems"],
        not_ideal_for=["General conversation", "Creative tasks", "Simple Q&A"],
        examples=["Toolformer", "Gorilla", "ToolBench"],
    ),
    "multi_round_dialogue": DatasetFormatInfo(
        id="multi_round_dialogue",
        name="Multi-Round Dialogue",
        description="Complex dialogue simulations with specific instructions",
        structure='{"instruction": "...", "conversation": [{"role": "...", "content": "..."}]}',
        good_for=["Dialogue simulations", "Multi-agent modeling", "Goal-based interactions"],
        not_ideal_for=["Simple tasks", "Single-turn responses", "Factual Q&A"],
        examples=["DialogueSum", "Self-Instruct", "CAMEL-AI"],
    ),
    "code_task": DatasetFormatInfo(
        id="code_task",
        name="Code Task Format",
        description="Code-specific format with prompts, existing code, and output",
        structure='{"prompt": "...", "code": "...", "output": "..."}',
        good_for=["Code transformation", "Bug fixing", "Style matching", "Code generation"],
        not_ideal_for=["Text reasoning", "General conversation", "Non-technical tasks"],
        examples=["CodeAlpaca", "HumanEval+", "DeepSeek Coder-Instruct"],
    ),
    "reflection": DatasetFormatInfo(
        id="reflection",
        name="Reflection Format",
        description="Self-correction format with initial response, reflection, and correction",
        structure='{"instruction": "...", "output": "...", "reflection": "...", "corrected": "..."}',
        good_for=["Self-correction training", "Quality improvement", "Error analysis"],
        not_ideal_for=["Simple tasks", "Time-sensitive responses", "Factual lookups"],
        examples=["Self-Refine", "Constitutional AI", "Reflection datasets"],
    ),
    "retrieval_embedding": DatasetFormatInfo(
        id="retrieval_embedding",
        name="Retrieval/Embedding Format",
        description="Format for training retrieval and embedding models with query-passage pairs",
        structure='{"query": "...", "positive_passage": "...", "negative_passages": ["...", "..."]}',
        good_for=["RAG systems", "Semantic search", "Embedding model training",
                  "Information retrieval", "Document ranking"],
        not_ideal_for=["Generative LLMs directly", "Conversational AI", "Creative writing", "Code generation"],
        examples=["BEIR", "MTEB", "MSMARCO", "Natural Questions"],
    ),
    "reranking": DatasetFormatInfo(
        id="reranking",
        name="Reranking/Cross-Encoder Format",
        description="Pairwise format for training reranking models with query, positive, and negative documents",
        structure='{"query": "...", "positive": "...", "negative": "..."}',
        good_for=["Cross-encoder rerankers", "LLM-based rerankers", "Contrastive learning",
                  "Search result reranking", "Document relevance scoring"],
        not_ideal_for=["Bi-encoder training", "Embedding models", "Generative text tasks", "Conversational AI"],
        examples=["MS MARCO pairs", "BGE reranker data", "MonoT5 datasets"],
    ),
}


def get_format_info(format_id: str) -> DatasetFormatInfo:
    """Look up a format, raising KeyError with the known ids if it doesn't exist."""
    try:
        return DATASET_FORMATS[format_id]
    except KeyError:
        raise KeyError(
            f"Unknown dataset format '{format_id}'. Known: {', '.join(DATASET_FORMATS)}"
        ) from None


def all_formats() -> List[DatasetFormatInfo]:
    return list(DATASET_FORMATS.values())
