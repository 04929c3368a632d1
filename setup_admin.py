"""
Script Utilitário: setup_admin.py
Use este script para criar o perfil "Administrador" (todas as permissões) e
atribuí-lo a um usuário pelo e-mail.
"""

from censo import create_app
from censo.core.constants import COLECAO_PERFIS, COLECAO_USUARIOS, PERMISSOES
from censo.core.contexto import obter_contexto
from censo.users import services as users_services

ID_PERFIL_ADMIN = 'admin'

# Inicializa a aplicação para carregar configurações e banco de dados
app = create_app()


def promover_usuario(email, nome=None):
    print(f"--- Promovendo usuário: {email} ---")

    with app.app_context():
        ctx = obter_contexto()
        if ctx.db is None:
            print("❌ ERRO: sem conexão com o Firestore. Verifique GOOGLE_APPLICATION_CREDENTIALS.")
            return

        users_services.salvar_perfil(ctx.db, ctx.canal, 'Administrador', list(PERMISSOES),
                                     perfil_id=ID_PERFIL_ADMIN)

        existentes = list(ctx.db.collection(COLECAO_USUARIOS).where('email', '==', email).limit(1).stream())
        dados = {'name': nome or email, 'email': email, 'roleId': ID_PERFIL_ADMIN, 'status': 'active'}
        if existentes:
            atual = existentes[0]
            dados['name'] = (atual.to_dict() or {}).get('name') or dados['name']
            users_services.salvar_usuario(ctx.db, ctx.canal, dados, usuario_id=atual.id)
        else:
            users_services.salvar_usuario(ctx.db, ctx.canal, dados)

        print(f"✅ SUCESSO! '{email}' agora tem o perfil '{COLECAO_PERFIS}/{ID_PERFIL_ADMIN}'.")
        print("⚠️  IMPORTANTE: Para que a mudança surta efeito, faça LOGOUT e LOGIN novamente no navegador.")


if __name__ == "__main__":
    email_alvo = input("Digite o e-mail do usuário que será Admin: ").strip().lower()
    promover_usuario(email_alvo)
