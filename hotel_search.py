from typing import List, Optional, Sequence, Tuple

from langchain_core.documents import Document
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from app_logging import get_logger

logger = get_logger("hotel_search")

SYSTEM_PROMPT = (
    "You are a helpful hotel booking assistant. "
    "Answer questions about hotels, destinations and stays concisely."
)


def hotel_to_document(hotel) -> Document:
    # The page content is what gets embedded
    return Document(
        page_content=f"{hotel.description} located in {hotel.location}. Price per night: {hotel.price}",
        metadata={"hotel_id": hotel.id},
    )


class HotelSearch:
    """
    Embedding search and chat over the hotel catalog. The vector store and the
    chat model are passed in; this class adds no ranking of its own.
    """

    def __init__(self, vectorstore, llm):
        self.vectorstore = vectorstore
        # Prompt -> Model -> Output Parser (plain text out)
        prompt = ChatPromptTemplate.from_messages([
            ("system", SYSTEM_PROMPT),
            ("human", "{user_input}"),
        ])
        self.chain = prompt | llm | StrOutputParser()

    def index_hotels(self, hotels: Sequence) -> int:
        docs = [hotel_to_document(hotel) for hotel in hotels]
        if not docs:
            return 0
        # ids = hotel ids, so indexing again overwrites instead of duplicating
        self.vectorstore.add_documents(docs, ids=[hotel.id for hotel in hotels])
        logger.info("hotels_indexed", count=len(docs))
        return len(docs)

    def search(self, query: str, k: int = 4) -> List[Tuple[str, float]]:
        results = self.vectorstore.similarity_search_with_score(query, k=k)
        matches = [(doc.metadata["hotel_id"], float(score)) for doc, score in results]
        logger.info("hotel_search", query=query, matches=len(matches))
        return matches

    def chat(self, prompt: str) -> str:
        return self.chain.invoke({"user_input": prompt})


def build_hotel_search(settings) -> Optional[HotelSearch]:
    """Google embeddings + Chroma + Gemini. None when no API key is configured."""
    if not settings.google_api_key:
        logger.warning("hotel_search_disabled", reason="GOOGLE_API_KEY not set")
        return None

    from langchain_chroma import Chroma
    from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings

    embeddings = GoogleGenerativeAIEmbeddings(
        model=settings.embedding_model, google_api_key=settings.google_api_key
    )
    vectorstore = Chroma(
        collection_name=settings.vector_collection,
        embedding_function=embeddings,
        persist_directory=settings.vector_store_dir,
    )
    llm = ChatGoogleGenerativeAI(
        model=settings.chat_model, temperature=0.7, google_api_key=settings.google_api_key
    )
    return HotelSearch(vectorstore, llm)
